import argparse
import asyncio
import json
import sys
from typing import List, Optional

from agents.rubric import RubricConfig
from agents.rubric_scorer import RubricScorer
from tools.audit_sink import build_audit_sink
from tools.export import result_to_dict
from tools.llm_client import LLMClient, UpstreamBillingRequired, UpstreamRateLimited, UpstreamUnavailable
from utils.config import load_config
from utils.logging import setup_logging, get_logger


logger = get_logger(__name__)

EXIT_UPSTREAM_UNAVAILABLE = 3
EXIT_RATE_LIMITED = 4
EXIT_BILLING_REQUIRED = 5


def read_text_arg(value: Optional[str], path: Optional[str]) -> str:
    if path:
        with open(path, "r", encoding="utf-8") as f:
            return f.read().strip()
    return (value or "").strip()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Score a prompt against the Goal/Context/Source/Expectation rubric.")
    parser.add_argument("prompt", nargs="?", help="prompt text to score; read from stdin when omitted")
    parser.add_argument("--prompt-file", help="read the prompt from this file")
    parser.add_argument("--reference", default="", help="reference (model) answer text")
    parser.add_argument("--reference-file", help="read the reference answer from this file")
    parser.add_argument("--json", action="store_true", help="print the raw JSON result")
    return parser


def print_summary(result_dict: dict) -> None:
    print(f"Score: {result_dict['score']}/20")
    print(f"  Goal:        {result_dict['goal_score']}/5")
    print(f"  Context:     {result_dict['context_score']}/5")
    print(f"  Source:      {result_dict['source_score']}/5")
    print(f"  Expectation: {result_dict['expectation_score']}/5")
    print("\nFeedback:\n")
    print(result_dict["feedback"] or "(no feedback returned)")
    print("\nEnhanced prompt:\n")
    print(result_dict["enhanced_prompt"])


async def run_cli(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = load_config()
    setup_logging(cfg.log_level)

    prompt = read_text_arg(args.prompt, args.prompt_file)
    if not prompt and not args.prompt_file and not sys.stdin.isatty():
        prompt = sys.stdin.read().strip()
    if not prompt:
        print("No prompt text provided.", file=sys.stderr)
        return 2
    reference = read_text_arg(args.reference, args.reference_file)

    scorer = RubricScorer(
        config=RubricConfig(feedback_max_chars=cfg.feedback_max_chars),
        llm=LLMClient(cfg),
        audit_sink=build_audit_sink(cfg),
    )
    try:
        result = await scorer.evaluate(prompt, reference)
    except UpstreamRateLimited:
        print("Rate limits exceeded, please try again later.", file=sys.stderr)
        return EXIT_RATE_LIMITED
    except UpstreamBillingRequired:
        print("Payment required, please add funds to your workspace.", file=sys.stderr)
        return EXIT_BILLING_REQUIRED
    except UpstreamUnavailable as e:
        print(f"Scoring service unavailable: {e}", file=sys.stderr)
        return EXIT_UPSTREAM_UNAVAILABLE
    finally:
        await scorer.aclose()

    payload = result_to_dict(result)
    if args.json:
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        print_summary(payload)

    for name, stats in scorer.telemetry.summary().items():
        logger.debug(f"{name}: {stats['total_ms']:.0f} ms over {stats['count']:.0f} calls")
    return 0


def main():
    try:
        sys.exit(asyncio.run(run_cli()))
    except KeyboardInterrupt:
        print("\nCancelled.")
        sys.exit(130)


if __name__ == "__main__":
    main()
