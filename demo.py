#!/usr/bin/env python3
"""
Demo script for the Multi-Model Research Orchestrator.

Runs the streaming pipeline in-process, without the API server, and prints
the event stream as it arrives.

Usage:
    python demo.py "What are the latest developments in quantum computing?"
    python demo.py --mock "Explain the impact of AI on healthcare"
    python demo.py --mock --tasks "How should we price a B2B analytics product?"
"""

import sys
import json
import random
import asyncio
import argparse
from pathlib import Path
from datetime import datetime

# Add paths
sys.path.insert(0, str(Path(__file__).parent))

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent / ".env")


class MockModelAdapter:
    """Mock model adapter for demo without API keys."""

    def __init__(self, fail: tuple = ()):
        self.fail = set(fail)

    async def invoke(self, model_id: str, prompt: str):
        if model_id in self.fail:
            await asyncio.sleep(0.2)
            raise RuntimeError("Simulated provider outage")

        if "research analyst" in prompt:
            text = (
                "**Synthesis**\n\nThe models broadly agree on the main drivers, differ on "
                "timelines, and flag the same open risks. Combined, they suggest a cautious "
                "but positive outlook."
            )
        else:
            text = (
                f"{model_id} here. Key points: the field is moving quickly, investment is "
                "rising, and practical adoption still faces cost and regulatory hurdles."
            )

        for word in text.split(" "):
            await asyncio.sleep(random.uniform(0.01, 0.05))
            yield word + " "

    async def complete(self, model_id: str, prompt: str) -> str:
        await asyncio.sleep(0.1)
        if "clarifying questions" in prompt:
            return json.dumps([
                "What timeframe are you interested in?",
                "Which region or market matters most?",
                "Who is the audience for this research?",
            ])
        return json.dumps({
            "tasks": [
                {"id": "task-1", "title": "Market landscape", "description": "Map competitors and pricing.",
                 "prompt": "Survey the competitive landscape and typical pricing models."},
                {"id": "task-2", "title": "Customer willingness to pay", "description": "Buyer value drivers.",
                 "prompt": "Research what drives willingness to pay for this kind of product."},
                {"id": "task-3", "title": "Risks and regulation", "description": "Constraints on pricing.",
                 "prompt": "Identify regulatory and go-to-market risks that constrain pricing."},
            ]
        })


def print_event(event, streamed: dict) -> None:
    if event.name == "model-chunk":
        streamed[event.data["name"]] = streamed.get(event.data["name"], 0) + 1
    elif event.name == "synthesis-chunk":
        print(event.data["chunk"], end="", flush=True)
    elif event.name == "model-complete":
        status = "✓" if event.data["error"] is None else f"✗ {event.data['error']}"
        chunks = streamed.get(event.data["name"], 0)
        print(f"   [{event.data['name']}] {status} ({chunks} chunks)")
    elif event.name == "search-complete":
        print(f"   🔍 Web search: {'results found' if event.data['hasResults'] else 'no results'}")
    elif event.name == "synthesis-complete":
        if event.data["text"] is None:
            print("   ❌ Synthesis failed")
        print()
    elif event.name == "done":
        print("\n   ✅ done")


async def run_demo(query: str, use_mock: bool = False, use_tasks: bool = False):
    """Run the research orchestrator demo."""

    print("\n" + "="*60)
    print("🔬 MULTI-MODEL RESEARCH ORCHESTRATOR DEMO")
    print("="*60)
    print(f"\n📝 Query: {query}\n")

    from config import config
    from core.llm import create_model_adapter
    from core.search import WebSearch
    from orchestration.planner import default_assignments
    from orchestration.supervisor import ResearchSupervisor

    if use_mock or not config.validate():
        print("ℹ️  Using mock model adapter (no API key found)\n")
        adapter = MockModelAdapter(fail=("meta/llama-3.3-70b",))
        search = None
        models = config.default_models + ["meta/llama-3.3-70b"]
    else:
        print(f"✅ Using {config.llm_provider} backends\n")
        adapter = create_model_adapter(config)
        search = WebSearch(api_key=config.tavily_api_key, max_results=config.search_max_results)
        models = config.default_models

    supervisor = ResearchSupervisor(
        adapter=adapter,
        search=search,
        synthesis_model=config.synthesis_model,
        planner_model=config.planner_model,
        timeout_seconds=config.model_timeout_seconds,
    )

    start_time = datetime.now()
    streamed = {}

    if use_tasks:
        questions = await supervisor.generate_clarifying_questions(query)
        print("❓ Clarifying questions (answered blank for the demo):")
        for q in questions:
            print(f"   • {q}")

        tasks = await supervisor.generate_research_plan(query, [""] * len(questions))
        assignments = default_assignments(tasks, models)
        print("\n📋 Research plan:")
        for task in tasks:
            print(f"   {task.title}: {', '.join(assignments[task.id]) or '(no models)'}")
        print()
        events = supervisor.stream_task_query(tasks, assignments, query)
    else:
        print(f"🤖 Models: {', '.join(models)}\n")
        events = supervisor.stream_query(query, models)

    async for event in events:
        print_event(event, streamed)

    elapsed = (datetime.now() - start_time).total_seconds()
    print(f"\n✅ Pipeline complete in {elapsed:.1f}s")
    print("\n" + "="*60)
    print("Demo complete!")
    print("="*60 + "\n")


def main():
    parser = argparse.ArgumentParser(description="Multi-Model Research Orchestrator Demo")
    parser.add_argument("query", nargs="?", default="What are the latest developments in artificial intelligence?",
                        help="Research query to investigate")
    parser.add_argument("--mock", action="store_true", help="Use mock models (no API key needed)")
    parser.add_argument("--tasks", action="store_true", help="Use the task-planning workflow")
    args = parser.parse_args()

    asyncio.run(run_demo(args.query, args.mock, args.tasks))


if __name__ == "__main__":
    main()
