import argparse
import asyncio
import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from mindweave import discover
from mindweave.clustering import cluster_content
from mindweave.config import get_default_user, save_config
from mindweave.constants import DEFAULT_CLUSTER_COUNT
from mindweave.logging_config import configure_logging
from mindweave.models import DiscoverResponse
from mindweave.store import InMemoryContentStore

console = Console()

FEEDS = {
    "activity": discover.activity_recommendations,
    "unexplored": discover.unexplored_topics,
    "rediscover": discover.rediscover,
    "blended": discover.blended_recommendations,
}


def load_store(path: Path) -> InMemoryContentStore | None:
    try:
        return InMemoryContentStore.from_json(path)
    except (OSError, ValueError, KeyError, TypeError) as e:
        console.print(f"[red]Could not load {path}: {e}[/]")
        return None


def resolve_user(args) -> str | None:
    user_id = args.user or get_default_user()
    if not user_id:
        console.print(
            "[red]Error: User not provided. Pass --user once to save it.[/]"
        )
        return None
    # Save for next time if explicit
    if args.user:
        save_config("user_id", user_id)
    return user_id


async def run_cluster(args) -> int:
    user_id = resolve_user(args)
    store = load_store(args.export)
    if user_id is None or store is None:
        return 1

    with console.status(f"[cyan]Clustering content for {user_id}..."):
        clusters = await cluster_content(store, user_id, num_clusters=args.clusters)

    if args.json:
        console.print_json(json.dumps([c.to_dict() for c in clusters]))
        return 0

    if not clusters:
        console.print("[yellow]Not enough embedded content to cluster.[/]")
        return 0

    table = Table(title=f"Clusters for {user_id}")
    table.add_column("Name", style="bold")
    table.add_column("Size", justify="right")
    table.add_column("Description")
    table.add_column("Examples", style="dim")
    for cluster in clusters:
        table.add_row(
            cluster.name,
            str(cluster.size),
            cluster.description,
            "\n".join(p["title"] for p in cluster.content_previews),
        )
    console.print(table)
    return 0


def render_feed(name: str, response: DiscoverResponse) -> None:
    if not response.success:
        console.print(f"[red]{response.message}[/]")
        return
    if not response.results:
        console.print(f"[yellow]No {name} recommendations.[/]")
        return

    table = Table(title=f"{name.capitalize()} recommendations")
    table.add_column("Score", justify="right")
    table.add_column("Similarity", justify="right")
    table.add_column("Title", style="bold")
    table.add_column("Type")
    table.add_column("Last viewed", style="dim")
    for r in response.results:
        table.add_row(
            f"{r.score:.3f}",
            f"{r.similarity:.2f}",
            r.item.title,
            r.item.type,
            r.last_viewed_at.strftime("%Y-%m-%d") if r.last_viewed_at else "never",
        )
    console.print(table)


def run_discover(args) -> int:
    user_id = resolve_user(args)
    store = load_store(args.export)
    if user_id is None or store is None:
        return 1

    response = FEEDS[args.feed](store, user_id, limit=args.limit)
    if args.json:
        console.print_json(
            json.dumps(
                {
                    "success": response.success,
                    "message": response.message,
                    "results": [r.to_dict() for r in response.results],
                }
            )
        )
    else:
        render_feed(args.feed, response)
    return 0 if response.success else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Cluster and discover content from a Mindweave export"
    )
    parser.add_argument("--log-level", default="WARNING")
    sub = parser.add_subparsers(dest="command", required=True)

    p_cluster = sub.add_parser("cluster", help="Group content by embedding similarity")
    p_cluster.add_argument("export", type=Path, help="JSON export file")
    p_cluster.add_argument("--user", help="User id (saved as default)")
    p_cluster.add_argument(
        "--clusters", type=int, default=DEFAULT_CLUSTER_COUNT, help="Desired cluster count"
    )
    p_cluster.add_argument("--json", action="store_true", help="Print JSON")

    p_discover = sub.add_parser("discover", help="Show a recommendation feed")
    p_discover.add_argument("export", type=Path, help="JSON export file")
    p_discover.add_argument("--user", help="User id (saved as default)")
    p_discover.add_argument("--feed", choices=sorted(FEEDS), default="activity")
    p_discover.add_argument("--limit", type=int, default=8)
    p_discover.add_argument("--json", action="store_true", help="Print JSON")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    if args.command == "cluster":
        return asyncio.run(run_cluster(args))
    return run_discover(args)


if __name__ == "__main__":
    raise SystemExit(main())
