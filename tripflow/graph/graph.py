from functools import partial
from typing import Optional, Union

from langgraph.graph import StateGraph, END

from tripflow.graph.intent import itinerary_request, parse_with_patterns
from tripflow.graph.merger import IntentMerger
from tripflow.graph.planner import Action, SlotFillingPlanner, decide_next_action
from tripflow.graph.state import TurnState
from tripflow.schemas import Intent, TripContext, TurnResult
from tripflow.services import Services, build_services
from tripflow.utils.logger import get_logger, truncate

log = get_logger("tripflow.graph")

ADVISOR_ERROR_MESSAGE = "I'm having trouble answering that right now. Could you rephrase your question?"
RESET_MESSAGE = "No problem, I've cleared your trip details. Where would you like to go next?"
TURN_ERROR_MESSAGE = "Something went wrong while planning your trip. Please try again."
ITINERARY_ERROR_MESSAGE = "I couldn't put that itinerary together right now. Could you try again?"
ITINERARY_FOLLOW_UP = (
    "\n\nReady to book? I can find flights, trains, buses and hotels for this trip. Just let me know!"
)


# ---------------------------
# Utilities
# ---------------------------
def add_trace(state: TurnState, node: str, detail: dict):
    state.setdefault("trace", [])
    state["trace"].append({"node": node, "detail": detail})


# ---------------------------
# Understanding
# ---------------------------
def node_understand(state: TurnState, services: Services) -> TurnState:
    text = state["user_input"]
    parsed = None
    if services.nlu is not None:
        try:
            parsed = services.nlu.parse(text)
        except Exception as e:
            log.warning("NLU failed, falling back to patterns: %s", e)
            add_trace(state, "nlu_error", {"error": str(e)})
    if parsed is None:
        parsed = parse_with_patterns(text)
        add_trace(state, "pattern_parse", parsed.to_wire())
    else:
        add_trace(state, "nlu_parse", parsed.to_wire())
    state["parsed"] = parsed
    return state


def route_intent(state: TurnState, services: Services) -> str:
    intent = state["parsed"].intent
    if intent == Intent.CANCEL_TRIP:
        return "reset"
    if intent == Intent.GENERAL_QUERY and state["context"].ask is None and services.advisor is not None:
        return "advise"
    if services.itinerary is not None and _itinerary_route(state) is not None:
        return "itinerary"
    return "merge"


def node_advise(state: TurnState, services: Services) -> TurnState:
    ctx = state["context"]
    try:
        answer = services.advisor.answer(state["user_input"])
    except Exception as e:
        log.error("travel advisor failed: %s", e)
        add_trace(state, "advise_error", {"error": str(e)})
        state["result"] = TurnResult.failure(ctx, ADVISOR_ERROR_MESSAGE)
        return state
    add_trace(state, "advise", {"answer": truncate(answer, 200)})
    state["result"] = TurnResult.ok(ctx, answer)
    return state


def _itinerary_route(state: TurnState):
    """(origin, destination, days, interests) for an N-day itinerary request with a known route."""
    request = itinerary_request(state["user_input"])
    if request is None:
        return None
    parsed, ctx = state["parsed"], state["context"]
    origin = parsed.origin or ctx.origin
    destination = parsed.destination or ctx.destination
    if not (origin and destination):
        return None
    days, interests = request
    return origin, destination, days, interests


def node_itinerary(state: TurnState, services: Services) -> TurnState:
    ctx = state["context"]
    origin, destination, days, interests = _itinerary_route(state)
    try:
        text = services.itinerary.plan(origin, destination, days, interests)
    except Exception as e:
        log.error("itinerary generation failed: %s", e)
        add_trace(state, "itinerary_error", {"error": str(e)})
        state["result"] = TurnResult.failure(ctx, ITINERARY_ERROR_MESSAGE)
        return state
    add_trace(state, "itinerary", {"days": days, "from": origin, "to": destination})
    reply = ctx.evolve(origin=origin, destination=destination, trip_duration=days)
    state["result"] = TurnResult.ok(reply, text + ITINERARY_FOLLOW_UP)
    return state


def node_reset(state: TurnState) -> TurnState:
    add_trace(state, "reset", {})
    state["result"] = TurnResult.ok(TripContext(), RESET_MESSAGE)
    return state


# ---------------------------
# Merge + plan
# ---------------------------
def node_merge(state: TurnState, merger: IntentMerger) -> TurnState:
    merged, short_circuit = merger.merge(state["user_input"], state["parsed"], state["context"])
    state["merged"] = merged
    if short_circuit is not None:
        add_trace(state, "merge_rejected", {"ask": short_circuit.ask})
        state["result"] = short_circuit
        return state
    state["action"] = decide_next_action(merged, state["parsed"].intent).value
    add_trace(state, "merge", {"context": merged.to_wire(), "action": state["action"]})
    return state


def node_route(state: TurnState) -> str:
    if state.get("result") is not None:
        return "done"
    return state.get("action", Action.FALLBACK.value)


def node_action(state: TurnState, planner: SlotFillingPlanner, action: Action) -> TurnState:
    result = planner.run(action, state["merged"], state["parsed"], state.get("user_details"))
    add_trace(state, action.value, {"success": result.success, "ask": result.ask})
    state["result"] = result
    return state


# ---------------------------
# Build graph
# ---------------------------
def build_graph(services: Services):
    merger = IntentMerger(services.dates)
    planner = SlotFillingPlanner(services)

    g = StateGraph(TurnState)

    g.add_node("understand", partial(node_understand, services=services))
    g.add_node("advise", partial(node_advise, services=services))
    g.add_node("itinerary", partial(node_itinerary, services=services))
    g.add_node("reset", node_reset)
    g.add_node("merge", partial(node_merge, merger=merger))
    for action in Action:
        g.add_node(action.value, partial(node_action, planner=planner, action=action))

    g.set_entry_point("understand")

    g.add_conditional_edges("understand", partial(route_intent, services=services), {
        "advise": "advise",
        "itinerary": "itinerary",
        "reset": "reset",
        "merge": "merge",
    })

    routes = {action.value: action.value for action in Action}
    routes["done"] = END
    g.add_conditional_edges("merge", node_route, routes)

    g.add_edge("advise", END)
    g.add_edge("itinerary", END)
    g.add_edge("reset", END)
    for action in Action:
        g.add_edge(action.value, END)

    return g.compile()


class TripAssistant:
    """One conversational turn at a time; the caller keeps the context between turns."""

    def __init__(self, services: Optional[Services] = None):
        self.services = services or build_services()
        self.graph = build_graph(self.services)

    def invoke(
        self,
        message: str,
        context: Union[TripContext, dict, None] = None,
        user_details: Optional[dict] = None,
    ) -> TurnState:
        text = (message or "").strip()
        if not text:
            raise ValueError("message is required")

        ctx = context if isinstance(context, TripContext) else TripContext.model_validate(context or {})
        state: TurnState = {
            "user_input": text,
            "context": ctx,
            "user_details": user_details,
            "trace": [],
        }
        try:
            return self.graph.invoke(state)
        except Exception as e:
            log.exception("turn failed: %s", e)
            state["result"] = TurnResult.failure(ctx, TURN_ERROR_MESSAGE)
            add_trace(state, "turn_error", {"error": str(e)})
            return state

    def process_turn(
        self,
        message: str,
        context: Union[TripContext, dict, None] = None,
        user_details: Optional[dict] = None,
    ) -> TurnResult:
        return self.invoke(message, context, user_details)["result"]


_default_assistant: Optional[TripAssistant] = None


def process_turn(
    message: str,
    context: Union[TripContext, dict, None] = None,
    user_details: Optional[dict] = None,
) -> TurnResult:
    """Module-level convenience using services built from the environment."""
    global _default_assistant
    if _default_assistant is None:
        _default_assistant = TripAssistant()
    return _default_assistant.process_turn(message, context, user_details)
