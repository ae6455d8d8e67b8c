from langgraph.graph import StateGraph, END

from portflow.services.chat_state import IntakeState
from portflow.services.chat_nodes import (
    classify_message_node,
    route_after_classify,
    converse_node,
    extract_intake_node,
    route_after_extract,
    submit_intake_node,
    report_failure_node,
)


def create_intake_graph():
    """
    Create and compile the LangGraph workflow for one intake conversation turn.

    classify -> converse                                  (gathering)
    classify -> extract -> submit | report_failure        (confirming)
    """

    workflow = StateGraph(IntakeState)

    workflow.add_node("classify_message_node", classify_message_node)
    workflow.add_node("converse_node", converse_node)
    workflow.add_node("extract_intake_node", extract_intake_node)
    workflow.add_node("submit_intake_node", submit_intake_node)
    workflow.add_node("report_failure_node", report_failure_node)

    workflow.set_entry_point("classify_message_node")

    workflow.add_conditional_edges(
        "classify_message_node",
        route_after_classify,
        {
            "converse_node": "converse_node",
            "extract_intake_node": "extract_intake_node",
        }
    )
    workflow.add_conditional_edges(
        "extract_intake_node",
        route_after_extract,
        {
            "submit_intake_node": "submit_intake_node",
            "report_failure_node": "report_failure_node",
        }
    )

    workflow.add_edge("converse_node", END)
    workflow.add_edge("submit_intake_node", END)
    workflow.add_edge("report_failure_node", END)

    return workflow.compile()


# Create singleton instance
intake_graph = create_intake_graph()
