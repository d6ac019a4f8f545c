#!/usr/bin/env python3
"""Agent Builder CLI.

Runs agent chat turns, single action executions and knowledge-base
operations against the configured PostgreSQL database, printing results
as JSON.

Environment Variables Required:
    - DATABASE_URL: PostgreSQL connection string
    - ENCRYPTION_KEY: 64-character hex key used for secrets and agent API keys

Optional:
    - VECTOR_BACKEND, CHROMA_HOST, CHROMA_PORT: vector index backend
    - DEFAULT_OPENAI_API_KEY: fallback embedding key
    - LOG_LEVEL: logging level (default INFO)

Example Usage:
    $ python main.py chat <agent_id> "What's the weather in Paris?"
    $ python main.py execute <action_id> --inputs '{"city": "Paris"}'
    $ python main.py kb-build <kb_id>
    $ python main.py kb-search <agent_id> "refund policy" --top-k 3
    $ python main.py kb-delete <kb_id>
"""
import argparse
import asyncio
import json
import logging
import sys

from dotenv import load_dotenv

load_dotenv()

# Local imports
from src.agentbuilder.config import Settings
from src.agentbuilder.container import ServiceContainer, build_container
from src.agentbuilder.domain.entities import Message, MessageRole
from src.agentbuilder.exceptions import AgentBuilderError

logger = logging.getLogger("agentbuilder")


def print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def json_object(value: str) -> dict:
    try:
        parsed = json.loads(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid JSON: {e}")
    if not isinstance(parsed, dict):
        raise argparse.ArgumentTypeError("expected a JSON object")
    return parsed


def json_history(value: str) -> list[Message]:
    try:
        parsed = json.loads(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid JSON: {e}")
    if not isinstance(parsed, list) or not all(isinstance(m, dict) for m in parsed):
        raise argparse.ArgumentTypeError('expected a JSON list of {"role", "content"} objects')
    try:
        return [Message.from_dict(m) for m in parsed]
    except (KeyError, ValueError) as e:
        raise argparse.ArgumentTypeError(f"invalid history entry: {e}")


async def run_chat(container: ServiceContainer, args: argparse.Namespace) -> None:
    messages = list(args.history or [])
    messages.append(Message(role=MessageRole.USER, content=args.message))
    result = await container.orchestrator.chat(args.agent_id, messages)
    print_json(result.to_dict())


async def run_execute(container: ServiceContainer, args: argparse.Namespace) -> None:
    result = await container.executor.execute(args.action_id, args.inputs)
    print_json(result.to_dict())


async def run_kb_build(container: ServiceContainer, args: argparse.Namespace) -> None:
    chunk_count = await container.knowledge.build(args.kb_id)
    print_json({"knowledgeBaseId": args.kb_id, "status": "indexed", "chunkCount": chunk_count})


async def run_kb_search(container: ServiceContainer, args: argparse.Namespace) -> None:
    results = await container.knowledge.search(args.agent_id, args.query, top_k=args.top_k)
    print_json([r.to_dict() for r in results])


async def run_kb_delete(container: ServiceContainer, args: argparse.Namespace) -> None:
    await container.knowledge.delete(args.kb_id)
    print_json({"knowledgeBaseId": args.kb_id, "deleted": True})


COMMANDS = {
    "chat": run_chat,
    "execute": run_execute,
    "kb-build": run_kb_build,
    "kb-search": run_kb_search,
    "kb-delete": run_kb_delete,
}


async def run(args: argparse.Namespace, settings: Settings) -> int:
    container = await build_container(settings)
    try:
        await COMMANDS[args.command](container, args)
    finally:
        await container.close()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Chat with agents, execute actions and manage knowledge bases",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py chat AGENT_ID "What's the weather in Paris?"
  python main.py execute ACTION_ID --inputs '{"city": "Paris"}'
  python main.py kb-build KB_ID
  python main.py kb-search AGENT_ID "refund policy" --top-k 3
  python main.py kb-delete KB_ID
        """
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    chat = subparsers.add_parser("chat", help="Send one user message to an agent")
    chat.add_argument("agent_id")
    chat.add_argument("message")
    chat.add_argument(
        "--history",
        type=json_history,
        metavar="JSON",
        help='Prior turns as a JSON list of {"role", "content"} objects',
    )

    execute = subparsers.add_parser("execute", help="Execute a single action")
    execute.add_argument("action_id")
    execute.add_argument(
        "--inputs",
        type=json_object,
        metavar="JSON",
        default="{}",
        help="Action inputs as a JSON object",
    )

    kb_build = subparsers.add_parser("kb-build", help="Extract, embed and index a knowledge base")
    kb_build.add_argument("kb_id")

    kb_search = subparsers.add_parser("kb-search", help="Search an agent's knowledge bases")
    kb_search.add_argument("agent_id")
    kb_search.add_argument("query")
    kb_search.add_argument("--top-k", type=int, default=5, help="Number of results (default: 5)")

    kb_delete = subparsers.add_parser("kb-delete", help="Delete a knowledge base and its vectors")
    kb_delete.add_argument("kb_id")

    return parser


def main():
    args = build_parser().parse_args()

    try:
        settings = Settings.from_env()
    except AgentBuilderError as e:
        print(f"[Main] Configuration error: {e}")
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        sys.exit(asyncio.run(run(args, settings)))
    except AgentBuilderError as e:
        logger.error(f"{e.code}: {e.message}")
        print_json({"error": e.to_dict()})
        sys.exit(1)


if __name__ == "__main__":
    main()
