"""faithsearch - comparative research across traditions

Simple CLI for running research queries.
"""

import argparse
import asyncio
import json

from faithsearch.agents.orchestrator import ResearchOrchestrator


async def run_research(query: str, model: str | None = None, synthesize: bool = True):
    """Run research on the given query."""
    print(f"Research query: {query}")
    print("-" * 50)

    orchestrator = ResearchOrchestrator(model=model)

    async for event in orchestrator.research(query, synthesize=synthesize):
        event_type = event.event.value
        data = event.data

        if event_type == "plan_created":
            queries = data.get("queries", {})
            print(f"\n[*] Query Plan ({len(queries)} categories):")
            for key, planned in queries.items():
                print(f"  {key}: {planned.get('query', '')[:80]} (x{planned.get('numResults')})")

        elif event_type == "batch_started":
            print(
                f"\n[~] Batch {data.get('batch')}/{data.get('total_batches')}: "
                f"{', '.join(data.get('categories', []))}"
            )

        elif event_type == "category_progress":
            print(f"  [{data.get('category')}] {data.get('phase')}: {data.get('detail', '')[:80]}")

        elif event_type == "source_added":
            print(f"  [+] {data.get('category')}: {data.get('title', '')[:80]}")

        elif event_type == "category_completed":
            marker = "!" if data.get("all_failed") else "+"
            print(
                f"  [{marker}] {data.get('category')} done: "
                f"{data.get('sources_count')} sources via {data.get('engine')}"
            )

        elif event_type == "retrieval_timeout":
            print(f"\n[!] Deadline hit; incomplete: {', '.join(data.get('incomplete_categories', []))}")

        elif event_type == "retrieval_complete":
            sources = data.get("sources", [])
            print(f"\n[*] Retrieval Complete: {len(sources)} sources in {data.get('runtime_ms')}ms")
            if not synthesize:
                for source in sources:
                    print(f"  - [{source['category']}] {source['title']} {source['link']}")

        elif event_type == "synthesis_started":
            print(f"\n[+] Synthesizing answer from {data.get('sources_count')} sources...")

        elif event_type == "research_complete":
            print(f"\n[*] Research Complete!")
            print(f"   Runtime: {data.get('runtime_ms')}ms")
            print(f"   Tokens: {data.get('tokens_used')}")
            print(f"\n{'='*50}")
            print("ANSWER:")
            print(f"{'='*50}")
            print(json.dumps(data.get("answer", {}), indent=2, ensure_ascii=False))

        elif event_type == "error":
            print(f"\n[!] Error: {data.get('message', 'Unknown error')}")


def main():
    parser = argparse.ArgumentParser(description="faithsearch comparative research tool")
    parser.add_argument("--query", "-q", required=True, help="Research query")
    parser.add_argument("--model", "-m", help="Model to use (default: from config)")
    parser.add_argument(
        "--no-synthesis",
        action="store_true",
        help="Stop after retrieval and print the aggregated sources",
    )

    args = parser.parse_args()

    asyncio.run(run_research(args.query, args.model, synthesize=not args.no_synthesis))


if __name__ == "__main__":
    main()
