"""Attribution repair for best results that lack kernel context.

The policy is deliberately conservative: an ``unknown`` result is attributed
only when its source file has exactly one registered kernel. Results of
multi-kernel files stay ``unknown`` and are marked ``ambiguous``; no nearest
or previous-kernel guessing is performed.
"""

from __future__ import annotations

from typing import Iterable

from attrs import evolve

from kernel_scan.data.models import BestResult
from kernel_scan.data.registry import KernelRegistry


def repair_attribution(results: Iterable[BestResult], registry: KernelRegistry) -> list[BestResult]:
    """Return ``results`` with unambiguous ``unknown`` kernels filled in.

    Parameters
    ----------
    results : iterable of BestResult
        Raw results in production order.
    registry : KernelRegistry
        Registry of the same run; only read.

    Returns
    -------
    list of BestResult
        New list in the same order. Inputs are not modified.
    """

    out: list[BestResult] = []
    for r in results:
        if not r.is_unknown:
            out.append(r)
            continue
        kernels = registry.kernels_of(r.source_name)
        if len(kernels) == 1:
            out.append(r.attributed_to(kernels[0].kernel_name))
        elif kernels:
            out.append(evolve(r, attribution="ambiguous"))
        else:
            out.append(evolve(r, attribution="missing"))
    return out
