from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import json

from ..coevolution_runner import CoevolutionResult, GenerationReport, Showdown

def _fmt_genome(genome) -> str:
    return "[" + ", ".join(f"{x:.3f}" for x in genome) + "]"

@dataclass
class GenerationDiag:
    generation: int
    best_attacker_score: float
    best_defender_score: float
    mean_attacker_score: float
    mean_defender_score: float
    best_attacker: List[float]
    best_defender: List[float]
    skipped: int
    elapsed: float

@dataclass
class ShowdownDiag:
    tag: str
    attacker_before: Dict[str, int]
    defender_before: Dict[str, int]
    attacker_after: Dict[str, int]
    defender_after: Dict[str, int]
    attacker_lost: int
    defender_lost: int

@dataclass
class RunReport:
    timestamp: str
    params: Dict[str, Any]
    generations: List[GenerationDiag]
    showdown: ShowdownDiag | None

    def to_json(self) -> str:
        d = asdict(self)
        return json.dumps(d, indent=2, sort_keys=False)

    def to_markdown(self) -> str:
        lines = []
        lines.append("# Fleet Co-evolution Run Report")
        lines.append(f"- **Timestamp:** {self.timestamp}")
        evo = self.params.get("evolution", {})
        ev = self.params.get("evaluator", {})
        lines.append(
            f"- **Population:** {evo.get('population')}  |  **Elite:** {evo.get('elite')}  |  "
            f"**Generations:** {evo.get('generations')}  |  **Workers:** {ev.get('workers')} ({ev.get('backend')})  |  "
            f"**Seed:** {evo.get('seed')}"
        )
        lines.append("\n## Generations")
        lines.append("| gen | best atk | best def | mean atk | mean def | best attacker | best defender |")
        lines.append("|---|---|---|---|---|---|---|")
        for g in self.generations:
            lines.append(
                f"| {g.generation} | {g.best_attacker_score:.3f} | {g.best_defender_score:.3f} | "
                f"{g.mean_attacker_score:.3f} | {g.mean_defender_score:.3f} | "
                f"`{_fmt_genome(g.best_attacker)}` | `{_fmt_genome(g.best_defender)}` |"
            )
        if self.showdown:
            sd = self.showdown
            lines.append("\n## Showdown")
            lines.append(f"- outcome: **{sd.tag}**")
            lines.append(f"- attacker: {sd.attacker_before} -> {sd.attacker_after} (lost {sd.attacker_lost})")
            lines.append(f"- defender: {sd.defender_before} -> {sd.defender_after} (lost {sd.defender_lost})")
        return "\n".join(lines) + "\n"

def _gen_diag(r: GenerationReport) -> GenerationDiag:
    return GenerationDiag(
        generation=r.generation,
        best_attacker_score=float(r.best_attacker_score),
        best_defender_score=float(r.best_defender_score),
        mean_attacker_score=float(r.mean_attacker_score),
        mean_defender_score=float(r.mean_defender_score),
        best_attacker=list(r.best_attacker),
        best_defender=list(r.best_defender),
        skipped=int(r.skipped),
        elapsed=float(r.elapsed),
    )

def build_run_report(
    params: Dict[str, Any],
    result: CoevolutionResult,
    showdown: Optional[Showdown] = None,
) -> RunReport:
    sd = None
    if showdown is not None:
        sd = ShowdownDiag(
            tag=showdown.resolution.tag,
            attacker_before=dict(showdown.attacker_before),
            defender_before=dict(showdown.defender_before),
            attacker_after=showdown.attacker_after,
            defender_after=showdown.defender_after,
            attacker_lost=showdown.attacker_lost,
            defender_lost=showdown.defender_lost,
        )
    return RunReport(
        timestamp=datetime.now(timezone.utc).isoformat(),
        params=dict(params),
        generations=[_gen_diag(r) for r in result.history],
        showdown=sd,
    )

__all__ = ["RunReport", "GenerationDiag", "ShowdownDiag", "build_run_report"]
