"""
Cricket Stats MCP Server.

Transport: stdio.

Expected MCP Tool Return Format:
{
    "ok": bool,
    "results": Any,          # Present if ok is True
    "error": str            # Present if ok is False
}
"""

import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, Any, Dict, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from .common.config import load_config
from .common.document_store import StoreError
from .pipeline import CricketPipeline, player_stats
from .pipeline.orchestrator import MAX_QUESTION_LENGTH, MIN_QUESTION_LENGTH

logger = logging.getLogger("cricket_agent.server")


class CricketServerApp:
    """
    MCP application wrapping the question pipeline.

    The pipeline owns the store and the optional LLM client; tools only
    translate arguments and shape results.
    """

    def __init__(
        self,
        pipeline: CricketPipeline,
        mcp_server_name: str = "cricket_stats_agent",
    ) -> None:
        self.pipeline = pipeline
        self.mcp = FastMCP(name=mcp_server_name)

        # ---------- MCP Tools: Ask ---------- #
        @self.mcp.tool(
            name="ask",
            description=(
                "Answer a natural-language question about cricket batting statistics "
                "(runs, averages, strike rates, centuries) for Test, ODI and T20 players. "
                "Returns a text sentence or a table plus the execution trace."
            ),
            annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False),
        )
        async def tool_ask(
            question: Annotated[str, Field(
                min_length=MIN_QUESTION_LENGTH,
                max_length=MAX_QUESTION_LENGTH,
                description="the cricket question to answer",
            )],
            user_id: Annotated[str, Field(min_length=1, description="user whose conversation memory is used")] = "anonymous",
        ) -> Dict[str, Any]:
            response = self.pipeline.ask(question, user_id)
            return {"ok": True, "results": response.to_dict()}

        # ---------- MCP Tools: Conversation History ---------- #
        @self.mcp.tool(
            name="get_history",
            description="Get the most recent conversation turns of a user, newest first.",
            annotations=ToolAnnotations(readOnlyHint=True, destructiveHint=False),
        )
        async def tool_get_history(
            user_id: Annotated[str, Field(min_length=1, description="user to read history for")],
            limit: Annotated[int, Field(ge=1, le=200, description="maximum number of turns")] = 50,
        ) -> Dict[str, Any]:
            turns = self.pipeline.memory.history(user_id, limit)
            return {
                "ok": True,
                "results": [turn.model_dump(mode="json", by_alias=True) for turn in turns],
            }

        # ---------- MCP Tools: Conversation Summary ---------- #
        @self.mcp.tool(
            name="get_summary",
            description="Get the running summary of a user's older conversations, if any.",
            annotations=ToolAnnotations(readOnlyHint=True, destructiveHint=False),
        )
        async def tool_get_summary(
            user_id: Annotated[str, Field(min_length=1, description="user to read the summary for")],
        ) -> Dict[str, Any]:
            summary = self.pipeline.memory.summary(user_id)
            return {
                "ok": True,
                "results": summary.model_dump(mode="json", by_alias=True) if summary else None,
            }

        # ---------- MCP Tools: Clear Memory ---------- #
        @self.mcp.tool(
            name="clear_memory",
            description="Delete every conversation turn and the summary of a user.",
            annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=True),
        )
        async def tool_clear_memory(
            user_id: Annotated[str, Field(min_length=1, description="user whose memory is deleted")],
        ) -> Dict[str, Any]:
            try:
                self.pipeline.memory.clear(user_id)
            except StoreError as e:
                return {"ok": False, "error": f"Failed to clear memory: {e}"}
            return {"ok": True, "results": {"user_id": user_id, "cleared": True}}

        # ---------- MCP Tools: Player Stats ---------- #
        @self.mcp.tool(
            name="player_stats",
            description="Number of players and total runs stored per format (test, odi, t20).",
            annotations=ToolAnnotations(readOnlyHint=True, destructiveHint=False),
        )
        async def tool_player_stats() -> Dict[str, Any]:
            try:
                return {"ok": True, "results": player_stats(self.pipeline.store)}
            except StoreError as e:
                return {"ok": False, "error": f"Error getting stats: {e}"}

        # ---------- MCP Tools: Health ---------- #
        @self.mcp.tool(
            name="health",
            description="Report store connectivity and whether an LLM is configured.",
            annotations=ToolAnnotations(readOnlyHint=True, destructiveHint=False),
        )
        async def tool_health() -> Dict[str, Any]:
            return {
                "ok": True,
                "results": {
                    "store_reachable": self.pipeline.store.ping(),
                    "llm_configured": self.pipeline.has_llm,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                },
            }

    def run(self) -> None:
        """Runs the MCP server using stdio transport."""
        self.mcp.run(transport="stdio")


def main(argv: Optional[list] = None) -> None:
    parser = argparse.ArgumentParser(description="Run the cricket stats MCP server (stdio).")
    parser.add_argument(
        "--server-name",
        default="cricket_stats_agent",
        help="Advertised MCP server name.",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.json (default: ~/.cricket-agent/config.json).",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
    )
    args = parser.parse_args(argv)

    load_dotenv()
    # stdout carries the MCP protocol
    logging.basicConfig(
        stream=sys.stderr,
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(Path(args.config).expanduser() if args.config else None)
    pipeline = CricketPipeline.from_config(config)
    try:
        pipeline.store.ensure_indexes()
    except StoreError as e:
        logger.warning("Could not create indexes: %s", e)

    CricketServerApp(pipeline, mcp_server_name=args.server_name).run()


if __name__ == "__main__":
    main()
