"""System prompt rendering for the tunnelchat orchestrator.

Modular prompt system: each section is a function that returns a string.
Sections are composed in build_system_prompt() from the turn's registry
and the caller's editor context.
"""

import json
from typing import Any, Dict, Iterable, Optional

from ..constants import MAX_FILE_CONTEXT_CHARS
from ..tools.models import ToolDescriptor


# ---------------------------------------------------------------------------
# Section renderers - each returns a prompt fragment or empty string
# ---------------------------------------------------------------------------

def render_preamble() -> str:
    return (
        "You are an AI assistant that helps users interact with remote services "
        "(filesystem, file conversion, email, spreadsheet scripting and more) "
        "through tool calling."
    )


def render_tool_line(tool: ToolDescriptor) -> str:
    """``[SERVICE] name: description`` followed by its parameter list."""
    badge = f"[{tool.service_name.upper()}] " if tool.service_name else ""
    schema = tool.parameter_schema or {}
    properties = schema.get("properties") if isinstance(schema, dict) else None

    if isinstance(properties, dict):
        required = set(schema.get("required") or [])
        params = ", ".join(
            f"{key}: {prop.get('type', 'string') if isinstance(prop, dict) else 'string'} "
            f"({'required' if key in required else 'optional'})"
            for key, prop in properties.items()
        )
    else:
        params = json.dumps(schema, default=str)

    return f"{badge}{tool.name}: {tool.description}\n  Parameters: {params}"


def render_tool_catalogue(tools: Iterable[ToolDescriptor]) -> str:
    lines = [render_tool_line(t) for t in tools]
    if not lines:
        return "# Available Tools\n\nNo tools are available for this turn. Answer directly."
    return "# Available Tools\n\n" + "\n".join(lines)


def render_general_instructions() -> str:
    return """
# General Instructions

- Each service provides different tools. Choose the tool that matches the user's request.
- Use the exact tool names from the list above.
- Tool calls in one reply run in the order you list them. Later calls may rely on earlier ones.
- Never fabricate tool results or claim a tool ran when it did not.
""".strip()


def render_editor_context(extras: Optional[Dict[str, Any]]) -> str:
    """Editor state block; empty unless a file is open."""
    if not extras or not extras.get("currentFile"):
        return ""

    project_id = extras.get("currentProject") or "Unknown"
    project_name = extras.get("currentProjectName") or project_id
    current_file = extras["currentFile"]
    content = extras.get("currentFileContent")

    if content:
        if len(content) > MAX_FILE_CONTEXT_CHARS:
            content = content[:MAX_FILE_CONTEXT_CHARS] + "\n... (truncated)"
        file_block = (
            f"--- CURRENT FILE CONTENT ({current_file}) ---\n"
            f"{content}\n"
            f"--- END OF FILE CONTENT ---"
        )
    else:
        file_block = "(No content loaded yet)"

    return (
        "# Editor Context\n\n"
        f"- Current Project: {project_name}\n"
        f"- Project ID: {project_id}\n"
        f"- Currently Open File: {current_file}\n\n"
        f"{file_block}\n\n"
        'When the user asks about "this code" or "the code", they mean the file shown above.'
    )


def _quoted(values: Any) -> str:
    if not isinstance(values, list):
        return ""
    return ", ".join(f'"{v}"' for v in values)


def render_sheet(sheet: Dict[str, Any]) -> str:
    """One sheet's title, size, headers and up to two sample rows."""
    title = sheet.get("sheetTitle") or sheet.get("title") or "Untitled"
    lines = [
        f'Sheet: "{title}" ({sheet.get("rowCount", "?")} rows x {sheet.get("columnCount", "?")} cols)',
        f"  Column Headers: [{_quoted(sheet.get('headers')) or 'No headers'}]",
    ]
    samples = sheet.get("sampleData") if isinstance(sheet.get("sampleData"), list) else []
    for i, row in enumerate(samples[:2], start=1):
        lines.append(f"  Sample Data Row {i}: [{_quoted(row) or 'No data'}]")
    return "\n".join(lines)


def render_spreadsheet_context(extras: Optional[Dict[str, Any]]) -> str:
    """Bound spreadsheet schema; empty unless a spreadsheet is attached."""
    if not extras or not extras.get("spreadsheetId"):
        return ""

    sheets = [s for s in extras.get("sheets") or [] if isinstance(s, dict)]
    structure = "\n".join(render_sheet(s) for s in sheets) or "(No sheets discovered yet)"

    return (
        "# Bound Spreadsheet\n\n"
        f"- Spreadsheet Name: \"{extras.get('spreadsheetName') or 'Untitled Spreadsheet'}\"\n"
        f"- Spreadsheet ID: {extras['spreadsheetId']}\n"
        f"- URL: {extras.get('spreadsheetUrl') or 'Unknown'}\n\n"
        f"{structure}\n\n"
        "This spreadsheet is already connected. Do not ask the user to upload or export it; "
        "use the column names above and SpreadsheetApp.getActiveSpreadsheet() to read it."
    )


def render_response_format() -> str:
    return """
# Response Format

Respond with a single JSON object:
- "content": Your response text to the user
- "toolCalls": Array of tools to call, or an empty array [] if no tools are needed

Each tool call has:
- "name": The exact tool name from the available tools list
- "args": Object with the tool's parameters

If you have enough information, set "toolCalls" to [] and give the final answer in "content".
Keep "content" short when calling tools; you will see the results before answering.
""".strip()


# ---------------------------------------------------------------------------
# Composer - assembles the final system prompt
# ---------------------------------------------------------------------------

def build_system_prompt(
    tools: Iterable[ToolDescriptor],
    instruction: Optional[str] = None,
    extras: Optional[Dict[str, Any]] = None,
) -> str:
    """Build the full system prompt from modular sections.

    Args:
        tools: The turn's tool descriptors (a ToolRegistry works)
        instruction: Caller instruction, placed last with highest priority
        extras: Editor context (currentProject, currentProjectName,
            currentFile, currentFileContent, spreadsheetId,
            spreadsheetName, spreadsheetUrl, sheets)

    Returns:
        Complete system prompt string.
    """
    sections = [
        render_preamble(),
        render_tool_catalogue(tools),
        render_general_instructions(),
        render_editor_context(extras),
        render_spreadsheet_context(extras),
        render_response_format(),
    ]

    if instruction:
        sections.append(f"# Custom Instructions (Highest Priority)\n\n{instruction}")

    return "\n\n".join(s for s in sections if s)
