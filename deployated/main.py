"""Command line entry point."""

import argparse
import asyncio
import sys

from deployated import __version__
from deployated.config import get_settings, load_environment
from deployated.core.exceptions import DeployatedError, PublishError
from deployated.core.orchestrator import PipelineOrchestrator, PipelineRequest, PipelineResult
from deployated.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="deployated",
        description="Generate a CI/CD workflow for a GitHub repository and deploy it",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate a workflow only
  %(prog)s deploy github.com/acme/widgets

  # Push the workflow and deploy to Vercel without prompts
  %(prog)s deploy https://github.com/acme/widgets --push --vercel --yes

  # Build and push a Docker image through GitHub Actions
  %(prog)s deploy github.com/acme/api --docker --push
""",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)
    deploy = subparsers.add_parser("deploy", help="Generate, push and deploy a workflow")
    deploy.add_argument("repo_url", help="github.com/<owner>/<repo> or its https:// URL")
    deploy.add_argument("--docker", action="store_true", help="Use the Docker Hub workflow")
    deploy.add_argument(
        "--cloud",
        choices=["vercel", "render"],
        default=None,
        help="Cloud platform to deploy to",
    )
    deploy.add_argument("--push", action="store_true", help="Push the workflow to GitHub")
    deploy.add_argument(
        "-y",
        "--yes",
        dest="skip_confirmation",
        action="store_true",
        help="Skip confirmation prompts",
    )
    deploy.add_argument("--vercel", action="store_true", help="Deploy to Vercel")
    return parser


def print_summary(result: PipelineResult) -> None:
    """Report a finished run on stdout."""
    analysis = result.analysis
    confidence = "" if analysis.source == "advisor" else " (from repository files)"
    print(f"🔍 Detected framework: {analysis.framework}{confidence}")
    for requirement in analysis.deployment_requirements:
        print(f"   📦 {requirement}")
    for issue in analysis.potential_issues:
        print(f"   ⚠️  {issue}")
    if analysis.optimization_suggestions:
        print("\n💡 Optimization suggestions:")
        for suggestion in analysis.optimization_suggestions:
            print(f"   - {suggestion}")
        print()

    print(f"✅ Workflow saved for {result.workflow.framework} ({result.workflow.source})")

    if result.published:
        action = "created" if result.published.created else "updated"
        print(
            f"🚀 Workflow {action} at {result.published.path} "
            f"on {result.published.branch}"
        )

    deployment = result.deployment
    if deployment is None:
        return
    if deployment.cancelled:
        print(f"⚠️  {deployment.message}")
        return

    marker = "🎉" if deployment.success else "❌"
    print(f"{marker} {deployment.message}")
    if deployment.url:
        print(f"🔗 {deployment.url}")
    if deployment.status:
        print(f"   Status: {deployment.status}")
    if deployment.next_steps:
        print("\n📋 Next Steps:")
        for number, step in enumerate(deployment.next_steps, start=1):
            print(f"{number}. {step}")


async def run_deploy(args: argparse.Namespace) -> int:
    """Run the deploy command and return the exit code."""
    request = PipelineRequest(
        repo_url=args.repo_url,
        docker=args.docker,
        cloud=args.cloud,
        push=args.push,
        skip_confirmation=args.skip_confirmation,
        vercel=args.vercel,
    )

    try:
        result = await PipelineOrchestrator(get_settings()).run(request)
    except PublishError as e:
        print(f"❌ {e.message}")
        for hint in e.hints:
            print(f"   💡 {hint}")
        return 1
    except DeployatedError as e:
        print(f"❌ {e.message}")
        return 1

    print_summary(result)
    return 0 if result.success else 1


def main(argv: list[str] | None = None) -> int:
    """Console script entry point."""
    load_environment()
    get_settings.cache_clear()
    configure_logging(get_settings())

    args = build_parser().parse_args(argv)
    logger.info("application.starting", version=__version__, command=args.command)

    if args.command == "deploy":
        return asyncio.run(run_deploy(args))
    return 1


if __name__ == "__main__":
    sys.exit(main())
