"""Tests for tunnelchat.orchestrator.prompts"""

from tunnelchat.orchestrator.prompts import (
    build_system_prompt,
    render_editor_context,
    render_spreadsheet_context,
    render_tool_line,
)
from tunnelchat.tools import ToolDescriptor, ToolRegistry


def fs_read() -> ToolDescriptor:
    return ToolDescriptor(
        name="fs_read_file",
        description="Read a file",
        parameter_schema={
            "type": "object",
            "properties": {"path": {"type": "string"}, "encoding": {}},
            "required": ["path"],
        },
        service_name="filesystem",
    )


# =========================================================================
# Tool lines
# =========================================================================


class TestToolLine:

    def test_badge_and_parameters(self):
        assert render_tool_line(fs_read()) == (
            "[FILESYSTEM] fs_read_file: Read a file\n"
            "  Parameters: path: string (required), encoding: string (optional)"
        )

    def test_schema_without_properties_printed_as_json(self):
        tool = ToolDescriptor(name="ping", description="Ping", parameter_schema={"type": "object"})
        assert render_tool_line(tool) == 'ping: Ping\n  Parameters: {"type": "object"}'


# =========================================================================
# Editor context
# =========================================================================


class TestEditorContext:

    def test_absent_without_open_file(self):
        assert render_editor_context(None) == ""
        assert render_editor_context({"currentProject": "p"}) == ""

    def test_file_content_included(self):
        block = render_editor_context({
            "currentProject": "proj-1",
            "currentProjectName": "Budget",
            "currentFile": "Code.gs",
            "currentFileContent": "function main() {}",
        })
        assert "Current Project: Budget" in block
        assert "Project ID: proj-1" in block
        assert "--- CURRENT FILE CONTENT (Code.gs) ---\nfunction main() {}" in block

    def test_long_content_truncated(self):
        block = render_editor_context({"currentFile": "Big.gs", "currentFileContent": "x" * 5000})
        assert "x" * 2000 + "\n... (truncated)" in block
        assert "x" * 2001 not in block

    def test_no_content_loaded(self):
        block = render_editor_context({"currentFile": "Code.gs"})
        assert "(No content loaded yet)" in block
        assert "Project ID: Unknown" in block


# =========================================================================
# Spreadsheet context
# =========================================================================


SHEET_EXTRAS = {
    "spreadsheetId": "sheet-123",
    "spreadsheetName": "Expenses",
    "spreadsheetUrl": "https://docs.google.com/spreadsheets/d/sheet-123",
    "sheets": [
        {
            "sheetTitle": "Q1",
            "rowCount": 40,
            "columnCount": 3,
            "headers": ["Date", "Item", "Amount"],
            "sampleData": [["2024-01-02", "Taxi", "18"], ["2024-01-03", "Lunch", "12"], ["x", "y", "z"]],
        },
        {"sheetTitle": "Empty", "rowCount": 0, "columnCount": 0, "headers": [], "sampleData": []},
    ],
}


class TestSpreadsheetContext:

    def test_absent_without_spreadsheet(self):
        assert render_spreadsheet_context(None) == ""
        assert render_spreadsheet_context({"currentFile": "Code.gs"}) == ""

    def test_schema_rendered(self):
        block = render_spreadsheet_context(SHEET_EXTRAS)
        assert '- Spreadsheet Name: "Expenses"' in block
        assert "- Spreadsheet ID: sheet-123" in block
        assert "- URL: https://docs.google.com/spreadsheets/d/sheet-123" in block
        assert 'Sheet: "Q1" (40 rows x 3 cols)' in block
        assert 'Column Headers: ["Date", "Item", "Amount"]' in block
        assert 'Sample Data Row 2: ["2024-01-03", "Lunch", "12"]' in block
        assert "Sample Data Row 3" not in block
        assert "Column Headers: [No headers]" in block

    def test_defaults_for_missing_fields(self):
        block = render_spreadsheet_context({"spreadsheetId": "s1"})
        assert 'Spreadsheet Name: "Untitled Spreadsheet"' in block
        assert "(No sheets discovered yet)" in block

    def test_included_in_system_prompt(self):
        prompt = build_system_prompt([], extras=SHEET_EXTRAS)
        assert prompt.index("# Bound Spreadsheet") < prompt.index("# Response Format")
        assert '"Date", "Item", "Amount"' in prompt


# =========================================================================
# Composer
# =========================================================================


class TestBuildSystemPrompt:

    def test_sections_in_order(self):
        prompt = build_system_prompt(ToolRegistry([fs_read()]))
        catalogue = prompt.index("# Available Tools")
        response_format = prompt.index("# Response Format")
        assert catalogue < response_format
        assert "[FILESYSTEM] fs_read_file" in prompt
        assert '"toolCalls"' in prompt

    def test_empty_registry(self):
        prompt = build_system_prompt(ToolRegistry())
        assert "No tools are available" in prompt

    def test_instruction_last(self):
        prompt = build_system_prompt([], instruction="Always answer in French")
        assert prompt.rstrip().endswith("Always answer in French")

    def test_editor_block_only_with_file(self):
        assert "# Editor Context" not in build_system_prompt([])
        assert "# Editor Context" in build_system_prompt([], extras={"currentFile": "Code.gs"})
