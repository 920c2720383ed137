"""
Editor Chat Example - A tool-calling session with a scripted model

This example shows how to:
1. Plug a custom model client into TunnelChat
2. Offer local tools alongside tunnel services
3. Forward editor state with an extras provider
"""

import asyncio
import json

from tunnelchat import TunnelChat, local_tool
from tunnelchat.tunnel import ServerHealth


# ============================================================
# Stand-ins for the model endpoint and the tunneling proxy
# ============================================================

class ScriptedModel:
    """Asks for the file listing, then answers."""

    def __init__(self):
        self.turn = 0

    async def complete(self, messages, context, model=None) -> str:
        self.turn += 1
        if self.turn == 1:
            return json.dumps({
                "content": "Let me look at the project files.",
                "toolCalls": [
                    {"name": "fs_list", "args": {"path": "/project"}},
                    {"name": "editor_selection", "args": {}},
                ],
            })
        # Free text is accepted too
        return "The project has Code.gs and appsscript.json; line 3 is selected."


class InMemoryTunnel:

    async def list_tools(self, service: str):
        return [{
            "name": "fs_list",
            "description": "List a directory",
            "inputSchema": {
                "type": "object",
                "properties": {"path": {"type": "string"}},
                "required": ["path"],
            },
        }]

    async def call_tool(self, service: str, tool: str, arguments: dict):
        return {"content": ["Code.gs", "appsscript.json"]}

    async def ping(self) -> ServerHealth:
        return ServerHealth(online=True)


@local_tool(service="editor")
async def editor_selection() -> dict:
    """Return the current selection in the editor."""
    return {"file": "Code.gs", "line": 3}


async def main():
    config = {
        "tunnel": {"server_key": "demo", "token": "demo-token"},
        "model": {"endpoint": "https://example.invalid/api/gemini"},
        "services": ["filesystem"],
    }

    async with TunnelChat(config, model_client=ScriptedModel(), tunnel_client=InMemoryTunnel()) as app:
        session = app.create_session(
            local_tools=[editor_selection],
            extras_provider=lambda: {"currentFile": "Code.gs", "currentFileContent": "function main() {}"},
        )

        result = await session.send("What's in my project?")

        print(f"Answer:      {result.content}")
        print(f"Stop reason: {result.stop_reason.value}")
        for call in result.tool_calls:
            status = "ok" if call.succeeded else f"failed ({call.error})"
            print(f"  - {call.name}: {status}")


if __name__ == "__main__":
    asyncio.run(main())
