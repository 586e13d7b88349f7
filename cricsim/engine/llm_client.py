"""
OpenAI-backed over generation.

The client is only created when an API key is configured; without one the
AI strategy simply declines every over.
"""
import json
import logging
from typing import Optional, Protocol

from openai import OpenAI

from cricsim.config import Settings, settings
from cricsim.engine.context_analyzer import SimulationContext
from cricsim.errors import ModelResponseError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a cricket match simulator producing realistic ball-by-ball overs.
Reply with a JSON object: {"over": [...], "commentary": "<one sentence>"}.
Each ball is {"event": "run"|"w"|"wd"|"nb"|"lb"|"b", "runs": 0-6, "extras": int,
"wicketType": "Bowled"|"Caught"|"LBW"|"Run Out"|"Stumped"|"Hit Wicket", "fielderId": int}.
Rules: exactly 6 balls that are not "wd" or "nb". "lb" and "b" have runs 0 and extras >= 1.
"wd" has runs 0 and extras >= 1; "nb" has extras >= 1. "run" and "w" have extras 0.
Only "w" has a wicketType. Caught, Run Out and Stumped need a fielderId from the fielding side,
other dismissals have none. After a no-ball the next legal ball is a free hit: only Run Out may dismiss."""


class OverModel(Protocol):
    def generate_over(self, context: SimulationContext, lookahead: int, aggression: int) -> dict:
        ...


def build_prompt(context: SimulationContext, lookahead: int = 1, aggression: int = 5) -> str:
    rrr = f"{context.required_run_rate:.2f}" if context.required_run_rate is not None else "n/a"
    target = context.target if context.target is not None else "n/a"
    return f"""Match situation:
Innings: {context.innings_number}, Over: {context.over + 1} of {context.total_overs}
Phase: {context.phase.value}
Batting: {context.batting_team_name} {context.score}/{context.wickets}, Target: {target}
Bowling: {context.bowling_team_name}
Striker: {context.striker.name} (rating {context.striker.rating}, {context.striker.runs} off {context.striker.balls_faced})
Non-striker: {context.non_striker.name} (rating {context.non_striker.rating})
Bowler: {context.bowler.name} (rating {context.bowler.rating})
Required run rate: {rrr}, Current run rate: {context.current_run_rate:.2f}
Wickets in hand: {context.wickets_in_hand}, Pressure: {context.pressure_index:.2f}
Momentum: batting {context.momentum.batting}, bowling {context.momentum.bowling}
Free hit pending: {"yes" if context.is_free_hit else "no"}
Fielding side ids: {", ".join(str(i) for i in context.fielder_ids)}
Wicket keeper id: {context.wicket_keeper_id if context.wicket_keeper_id is not None else "n/a"}
Batting aggression (0-10): {aggression}

Plan the next {lookahead} over(s) and return only the first one."""


class OpenAIOverModel:
    """Asks a chat model for one over as JSON"""

    def __init__(self, client: OpenAI, model: str = None, temperature: float = 0.8):
        self.client = client
        self.model = model or settings.AI_MODEL
        self.temperature = temperature

    def generate_over(self, context: SimulationContext, lookahead: int = 1, aggression: int = 5) -> dict:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(context, lookahead, aggression)},
            ],
            response_format={"type": "json_object"},
            temperature=self.temperature,
        )
        content = response.choices[0].message.content
        try:
            return json.loads(content)
        except (TypeError, ValueError) as exc:
            raise ModelResponseError(f"Model did not return JSON: {content!r:.200}") from exc


def create_client(config: Settings = settings) -> Optional[OpenAI]:
    if not config.ai_enabled:
        logger.info("No OpenAI API key configured, AI overs disabled")
        return None
    return OpenAI(api_key=config.OPENAI_API_KEY, timeout=config.AI_TIMEOUT)


def create_over_model(config: Settings = settings) -> Optional[OpenAIOverModel]:
    client = create_client(config)
    if client is None:
        return None
    return OpenAIOverModel(client, model=config.AI_MODEL)
