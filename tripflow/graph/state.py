from typing import TypedDict, Optional, Any

from tripflow.schemas import ParsedIntent, TripContext, TurnResult


class TurnState(TypedDict, total=False):
    user_input: str
    user_details: Optional[dict[str, Any]]

    # context echoed back by the caller
    context: TripContext

    # understanding
    parsed: ParsedIntent
    merged: TripContext

    # planner
    action: str                     # Action value chosen after merge
    result: TurnResult
    trace: list[dict]
