"""System instructions synthesized from the current tool catalog."""

from toolhost_server.config import QUALIFIED_NAME_SEPARATOR
from toolhost_server.tools.catalog import ToolCatalog

NO_TOOLS_INSTRUCTIONS = (
    "No tools are currently available. Answer the user's questions directly "
    "and say so if a request would need a tool."
)

TOOL_USAGE_POLICY = """When responding to user queries, use these tools as needed to provide complete answers. If a task requires multiple tools, use them in sequence without waiting for additional prompting. Always analyze tool results and use them to guide further tool choices when necessary.

Important: Tools are prefixed with the name of the server they belong to, followed by "{separator}" (e.g. "{example}"). Always call a tool by its full prefixed name.

If a tool returns an error, explain the problem to the user or try a different approach instead of repeating the same call.

Always provide thoughtful, complete responses that utilize all available tools when appropriate."""


def build_system_instructions(catalog: ToolCatalog) -> str:
    """Describe the available tools and the policy for using them.

    Args:
        catalog: The catalog the model will be offered

    Returns:
        str: The system instructions for the next model call
    """
    if len(catalog) == 0:
        return NO_TOOLS_INSTRUCTIONS

    tool_descriptions = "\n".join(
        f"- {entry.qualified_name}: {entry.descriptor.description}"
        for entry in catalog
    )
    first = next(iter(catalog))
    policy = TOOL_USAGE_POLICY.format(
        separator=QUALIFIED_NAME_SEPARATOR, example=first.qualified_name
    )
    return (
        "You have access to the following tools from multiple servers:\n"
        f"{tool_descriptions}\n\n{policy}"
    )
