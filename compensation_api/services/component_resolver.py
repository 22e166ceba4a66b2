"""
Evaluation order for a set of salary components.

Edges run base -> dependent:
  - PERCENTAGE(rate, of_code): of_code -> code
  - TAX_SLAB components: every earning -> tax component (the ladder needs the
    projected annual gross)

Kahn's algorithm with a (display_order, code) heap keeps the order stable for
components that do not depend on each other.
"""
from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from .component_catalog import ComponentDefinition, index_by_code
from .compensation_errors import CyclicComponentDependency, UnresolvedComponentReference

log = logging.getLogger(__name__)

POLICY_FALLBACK = "fallback"
POLICY_STRICT = "strict"


@dataclass(frozen=True)
class EvaluationPlan:
    order: tuple
    # code -> missing base code, for components evaluated against the wage instead
    fallbacks: Dict[str, str] = field(default_factory=dict)

    def is_fallback(self, code: str) -> bool:
        return code in self.fallbacks


def build_graph(components: Sequence[ComponentDefinition], policy: str = POLICY_FALLBACK):
    """
    Returns (by_code, dependents, fallbacks) where dependents[base] lists the
    codes that must be evaluated after base.
    """
    by_code = index_by_code(components)
    dependents: Dict[str, List[str]] = {code: [] for code in by_code}
    fallbacks: Dict[str, str] = {}

    for c in components:
        base = c.valuation.base_code
        if base is None or c.is_tax_component:
            continue
        if base not in by_code:
            if policy == POLICY_STRICT:
                raise UnresolvedComponentReference(c.code, base)
            fallbacks[c.code] = base
            continue
        dependents[base].append(c.code)

    for tax in (c for c in components if c.is_tax_component):
        for earning in components:
            if earning.is_earning and earning.code != tax.code:
                dependents[earning.code].append(tax.code)

    return by_code, dependents, fallbacks


def resolve_order(components: Sequence[ComponentDefinition], policy: str = POLICY_FALLBACK) -> EvaluationPlan:
    by_code, dependents, fallbacks = build_graph(components, policy)

    indegree = {code: 0 for code in by_code}
    for base, deps in dependents.items():
        for d in deps:
            indegree[d] += 1

    ready = [by_code[code].sort_key() for code, n in indegree.items() if n == 0]
    heapq.heapify(ready)

    order = []
    while ready:
        _, code = heapq.heappop(ready)
        order.append(code)
        for d in dependents[code]:
            indegree[d] -= 1
            if indegree[d] == 0:
                heapq.heappush(ready, by_code[d].sort_key())

    if len(order) != len(by_code):
        stuck = {code for code, n in indegree.items() if n > 0}
        raise CyclicComponentDependency(find_cycle(stuck, dependents, by_code))

    for code, missing in fallbacks.items():
        log.warning("component %s: base %s not in active set, using %% of wage", code, missing)
    log.debug("evaluation order: %s", ", ".join(order))
    return EvaluationPlan(order=tuple(order), fallbacks=fallbacks)


def find_cycle(stuck: set, dependents: Dict[str, List[str]], by_code) -> List[str]:
    """
    Every node left over by Kahn's pass has a predecessor that is also left
    over, so walking predecessors from any of them must revisit a node.
    Returns the cycle in dependency direction, closed: [A, B, A].
    """
    preds: Dict[str, List[str]] = {code: [] for code in stuck}
    for base, deps in dependents.items():
        if base not in stuck:
            continue
        for d in deps:
            if d in stuck:
                preds[d].append(base)

    start = min(stuck, key=lambda code: by_code[code].sort_key())
    seen: Dict[str, int] = {}
    path: List[str] = []
    node = start
    while node not in seen:
        seen[node] = len(path)
        path.append(node)
        node = min(preds[node], key=lambda code: by_code[code].sort_key())

    cycle = path[seen[node]:]
    cycle.reverse()
    cycle.append(cycle[0])
    return cycle
