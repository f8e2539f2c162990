import json
import asyncio
import argparse
from pathlib import Path
from typing import Any, Dict
from ..core.gate import enforce
from ..core.inputs import load_config
from ..core.errors import UpstreamQueryError, ActionError
from ..github.event import parse_event
from ..github.outputs import result_outputs
from .fake import RecordedGateway

CASES_DIR = Path("cases")
REPORT_PATH = Path("replay_report.md")
REPLAY_TOKEN = "replay-token"

def case_env(case: dict) -> Dict[str, str]:
    """Turn a case's `inputs` mapping into INPUT_* environment variables."""
    inputs = dict(case.get("inputs", {}))
    inputs.setdefault("token", REPLAY_TOKEN)
    env = {}
    for name, value in inputs.items():
        if isinstance(value, (list, dict)):
            value = json.dumps(value)
        elif isinstance(value, bool):
            value = "true" if value else "false"
        env[f"INPUT_{name.upper()}"] = str(value)
    return env

async def replay_one(case: dict) -> dict:
    """Run one recorded scenario and compare against its expectation."""
    env = case_env(case)
    config = load_config(env)
    event = parse_event(
        case.get("event_name", "pull_request"),
        case["payload"],
        repository=case.get("repository", "octo-org/octo-repo"),
        env={},
    )
    gateway = RecordedGateway.from_recording(case.get("github", {}))
    expected = case["expected"]

    try:
        result = await enforce(event, config, gateway)
        actual: Dict[str, Any] = dict(result_outputs(result))
    except (UpstreamQueryError, ActionError) as e:
        actual = {"error": type(e).__name__}

    actual["calls"] = gateway.steps_called()

    mismatches = []
    for key, want in expected.items():
        got = actual.get(key)
        if key in ("openCount", "allowedOpen", "mergedCount") and got is not None:
            got = int(got)
        if got != want:
            mismatches.append({"field": key, "expected": want, "actual": got})

    return {
        "case_id": case["case_id"],
        "expected": expected,
        "actual": actual,
        "match": not mismatches,
        "mismatches": mismatches,
    }

def calculate_metrics(all_results: list) -> dict:
    total = len(all_results)
    correct = sum(1 for r in all_results if r["match"])
    return {
        "total": total,
        "correct": correct,
        "accuracy": correct / total if total > 0 else 0,
    }

def write_report(all_results: list, path: Path = REPORT_PATH) -> None:
    metrics = calculate_metrics(all_results)
    with open(path, "w", encoding="utf-8") as f:
        f.write("# Replay Report\n\n")
        f.write("## Metrics\n\n")
        f.write(f"- Total: {metrics['total']}\n")
        f.write(f"- Correct: {metrics['correct']}\n")
        f.write(f"- Accuracy: {metrics['accuracy']:.2%}\n\n")

        f.write("## Case Results\n\n")
        for r in all_results:
            status = "✓" if r["match"] else "✗"
            f.write(f"- {status} {r['case_id']}: {r['actual'].get('decision', r['actual'].get('error'))}\n")
            for m in r["mismatches"]:
                f.write(f"  - {m['field']}: expected {m['expected']!r}, got {m['actual']!r}\n")

async def main():
    parser = argparse.ArgumentParser(description="Replay recorded enforcement scenarios")
    parser.add_argument("--cases", default=str(CASES_DIR))
    parser.add_argument("--report", default=str(REPORT_PATH))
    args = parser.parse_args()

    all_results = []
    for cf in sorted(Path(args.cases).glob("*.json")):
        with open(cf, encoding="utf-8") as f:
            case = json.load(f)
        all_results.append(await replay_one(case))

    write_report(all_results, Path(args.report))
    print(f"Report saved to {args.report}")

if __name__ == "__main__":
    asyncio.run(main())
