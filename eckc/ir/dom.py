# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Dominator analysis over an IR function's CFG.

Kept separate from the verifier so the graph algorithm can be tested on its
own. Only blocks reachable from the entry take part; unreachable blocks are
reported by the verifier instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from .nodes import Function, terminator_edges


@dataclass
class DominatorInfo:
	"""
	Dominator tables for reachable blocks.

	dom[b]  = set of blocks dominating b (including b)
	idom[b] = immediate dominator of b, or None for the entry.
	"""

	dom: Dict[str, Set[str]] = field(default_factory=dict)
	idom: Dict[str, Optional[str]] = field(default_factory=dict)

	def dominates(self, a: str, b: str) -> bool:
		return a in self.dom.get(b, set())


def successors(func: Function) -> Dict[str, List[str]]:
	return {
		name: [edge.target for edge in terminator_edges(block.terminator)]
		for name, block in func.blocks.items()
	}


def reachable_blocks(func: Function) -> List[str]:
	"""Blocks reachable from the entry, in reverse postorder."""
	succ = successors(func)
	seen: Set[str] = set()
	postorder: List[str] = []
	if func.entry not in func.blocks:
		return postorder

	# Explicit stack of (block, successor iterator); long `if` sequences make deep CFGs.
	seen.add(func.entry)
	stack = [(func.entry, iter(succ.get(func.entry, ())))]
	while stack:
		node, pending = stack[-1]
		for nxt in pending:
			if nxt not in seen and nxt in func.blocks:
				seen.add(nxt)
				stack.append((nxt, iter(succ.get(nxt, ()))))
				break
		else:
			stack.pop()
			postorder.append(node)
	return list(reversed(postorder))


class DominatorAnalysis:
	"""
	Compute dominators with the classic iterative dataflow:
	  - dom(entry) = {entry}
	  - dom(b) = {b} ∪ (⋂_{p ∈ preds(b)} dom(p)) until fixed point
	then pick idom(b) as the strict dominator that every other strict dominator
	of b also dominates.
	"""

	def compute(self, func: Function) -> DominatorInfo:
		order = reachable_blocks(func)
		entry = func.entry
		reachable = set(order)

		preds: Dict[str, Set[str]] = {b: set() for b in order}
		for name, targets in successors(func).items():
			if name not in reachable:
				continue
			for target in targets:
				preds[target].add(name)

		dom: Dict[str, Set[str]] = {b: set(order) for b in order}
		dom[entry] = {entry}

		changed = True
		while changed:
			changed = False
			for b in order:
				if b == entry:
					continue
				p_iter = iter(preds[b])
				inter = dom[next(p_iter)].copy()
				for p in p_iter:
					inter &= dom[p]
				new_dom = inter | {b}
				if new_dom != dom[b]:
					dom[b] = new_dom
					changed = True

		idom: Dict[str, Optional[str]] = {entry: None}
		for b in order:
			if b == entry:
				continue
			candidates = dom[b] - {b}
			idom[b] = next(
				(c for c in candidates if all(c == d or d in dom[c] for d in candidates)),
				None,
			)
		return DominatorInfo(dom=dom, idom=idom)


__all__ = ["DominatorInfo", "DominatorAnalysis", "reachable_blocks", "successors"]
