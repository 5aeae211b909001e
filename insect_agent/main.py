import argparse
import asyncio
import json
import sys

from insect_agent.config import (
    CLASS_INDEX_PATH,
    DEFAULT_TAU,
    DEFAULT_TOP_K,
    GEMINI_MODEL,
    KNOWLEDGE_PATH,
    SECONDARY_TIMEOUT_S,
    check_environment,
)
from insect_agent.errors import EmptyInputError
from insect_agent.imaging.loader import load_image
from insect_agent.knowledge.store import ClassIndex, KnowledgeStore, load_json
from insect_agent.llm.gemini_client import GeminiVLM
from insect_agent.llm.prompt_builder import build_prompt
from insect_agent.logger import get_logger
from insect_agent.stage.classify import CascadeOrchestrator
from insect_agent.stage.selector import select_top_k
from insect_agent.stage.session import ClassificationSession
from insect_agent.vision.primary import (
    StaticClassifier,
    format_candidates,
    load_predictions,
    to_confidence_map,
)

logger = get_logger("InsectAgent")


# --- Helpers ---

def load_resources(args):
    knowledge_store = KnowledgeStore.from_mapping(load_json(args.knowledge))
    class_index = ClassIndex.from_mapping(load_json(args.class_index))
    return knowledge_store, class_index


def print_result(result):
    print(f"\n{'='*60}")
    print(f"Primary Top-{len(result.primary_top_k)} candidates:")
    for line in format_candidates(result.primary_top_k):
        print(f"  {line}")
    print(f"tau: {result.tau:.1f}")
    if result.used_secondary_model:
        print(f"VLM output: {result.secondary_raw_text}")
    else:
        print("VLM output: not used (primary confidence above tau)")
    print(f"Predicted insect class: {result.final_identifier}")
    print(f"{'='*60}")


# --- Commands ---

def cmd_classify(args):
    try:
        image = load_image(args.image)
        predictions = load_predictions(args.predictions)
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    knowledge_store, class_index = load_resources(args)
    logger.info(f"Classifying {args.image} (tau={args.tau}, top-k={args.top_k})")
    orchestrator = CascadeOrchestrator(
        GeminiVLM(model_name=args.model),
        knowledge_store=knowledge_store,
        class_index=class_index,
        tau=args.tau,
        top_k=args.top_k,
        timeout=args.timeout,
    )
    session = ClassificationSession(StaticClassifier(predictions), orchestrator)

    try:
        result = asyncio.run(session.classify_image(image))
    except EmptyInputError as e:
        print(f"Error: {e}")
        return 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print_result(result)
    return 0


def cmd_prompt(args):
    try:
        predictions = load_predictions(args.predictions)
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    knowledge_store, class_index = load_resources(args)
    candidates = select_top_k(to_confidence_map(predictions), args.top_k, class_index)
    print(build_prompt(candidates, knowledge_store))
    return 0


def cmd_check(args):
    healthy = check_environment(verbose=True)
    print("STATUS: ENVIRONMENT READY" if healthy else "STATUS: SETUP INCOMPLETE")
    return 0 if healthy else 1


def build_parser():
    parser = argparse.ArgumentParser(description="InsectAgent: classifier + VLM cascade")
    subparsers = parser.add_subparsers(dest='command')

    def add_resource_args(p):
        p.add_argument('--predictions', required=True, help="Primary classifier output (JSON)")
        p.add_argument('--knowledge', default=str(KNOWLEDGE_PATH), help="Visual knowledge base (JSON)")
        p.add_argument('--class-index', default=str(CLASS_INDEX_PATH), help="Label -> class index (JSON)")
        p.add_argument('--top-k', type=int, default=DEFAULT_TOP_K)

    p_cls = subparsers.add_parser('classify', help="Run the cascade on one image")
    p_cls.add_argument('--image', required=True)
    add_resource_args(p_cls)
    p_cls.add_argument('--tau', type=float, default=DEFAULT_TAU, help="Skip the VLM above this confidence")
    p_cls.add_argument('--model', default=GEMINI_MODEL)
    p_cls.add_argument('--timeout', type=float, default=SECONDARY_TIMEOUT_S, help="VLM timeout in seconds")
    p_cls.add_argument('--json', action='store_true', help="Print the result as JSON")

    p_prompt = subparsers.add_parser('prompt', help="Print the VLM prompt without calling any model")
    add_resource_args(p_prompt)

    subparsers.add_parser('check', help="Check environment and resources")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == 'classify': return cmd_classify(args)
    elif args.command == 'prompt': return cmd_prompt(args)
    elif args.command == 'check': return cmd_check(args)
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
