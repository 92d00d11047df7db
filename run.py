#!/usr/bin/env python3
"""
Run the Research Orchestrator API server.

Usage:
    python run.py                    # Run on default port 8000
    python run.py --port 8080        # Run on custom port
    python run.py --reload           # Run with hot reload (dev mode)

Environment Variables (set in .env file or export):
    AI_GATEWAY_API_KEY=...          # Primary: routes every provider/model id
    ANTHROPIC_API_KEY=sk-ant-...    # Fallback: direct anthropic/* models
    OPENAI_API_KEY=sk-...           # Fallback: direct openai/* models
    TAVILY_API_KEY=tvly-...         # Optional: web search context
    LOG_LEVEL=INFO                  # Optional: logging level

Quick Start:
    1. Create a .env file with your API keys
    2. Install: pip install -e .
    3. Run the server: python run.py
    4. POST to http://localhost:8000/api/query
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv


def load_environment() -> None:
    """Load .env from the project directory if present."""
    env_file = Path(__file__).parent / ".env"
    if env_file.exists():
        load_dotenv(env_file)
        print(f"✅ Loaded .env from {env_file}")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )


def main():
    load_environment()

    from core.errors import ConfigError
    try:
        from config import config
    except ConfigError as e:
        print(f"❌ Configuration error: {e}")
        sys.exit(1)

    parser = argparse.ArgumentParser(description="Run the Research Orchestrator API")
    parser.add_argument("--host", default=config.api_host, help="Host to bind to")
    parser.add_argument("--port", type=int, default=config.api_port, help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    args = parser.parse_args()

    configure_logging(config.log_level)

    if os.getenv("AI_GATEWAY_API_KEY"):
        print("✅ Using the AI gateway for all models")
    elif os.getenv("ANTHROPIC_API_KEY") or os.getenv("OPENAI_API_KEY"):
        print("✅ Using direct provider keys (only anthropic/* and openai/* models will work)")
    else:
        print("⚠️  Warning: No model API key found. Every model call will fail.")
        print("   Set AI_GATEWAY_API_KEY (recommended), ANTHROPIC_API_KEY or OPENAI_API_KEY.")

    if not os.getenv("TAVILY_API_KEY"):
        print("ℹ️  Note: TAVILY_API_KEY not set. Queries will run without web search context.")

    print(f"""
╔══════════════════════════════════════════════════════════════╗
║         Multi-Model Research Orchestrator                     ║
╠══════════════════════════════════════════════════════════════╣
║  🔍 Web search      - Shared context fetched once per run     ║
║  🤖 Fan-out         - Every model streams in parallel         ║
║  🧩 Task planner    - Complementary sub-tasks per question    ║
║  📋 Synthesis       - One consolidated report                 ║
╚══════════════════════════════════════════════════════════════╝

🚀 Starting server at http://{args.host}:{args.port}
📖 API docs at http://localhost:{args.port}/docs
""")

    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload
    )


if __name__ == "__main__":
    main()
