# ==============================================
# Report Model
# ==============================================
#
# PURPOSE:
#   Turn a (possibly merged) Results into the plain structure a
#   renderer consumes: trimmed example sets, descriptive statistics,
#   thresholded frequency tables with percentages, and log2 tables.
#   Rendering itself (text/HTML) is left to the consumer; the CLI just
#   dumps this structure as JSON.
#
# FUNCTIONS:
# ----------
# - build_report(results, total_key_count=None, threshold=0.01) -> dict
# - write_reports(results_map, directory, total_key_count=None) -> list[Path]
#
# ==============================================

import json
import math
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from reckon.analysis.results import Results
from reckon.analysis.statistics import (
    Histogram,
    compute_power_of_two_histogram,
    compute_statistics,
    trim_and_sum,
)

# Entries making up this share of a table or less are left out of reports
DEFAULT_THRESHOLD = 0.01

# section name → (example keys, histograms, example sets)
SECTIONS = {
    "strings": ("string_keys", {"sizes": "string_sizes"},
                {"example_values": "string_values"}),
    "sets": ("set_keys", {"sizes": "set_sizes", "element_sizes": "set_element_sizes"},
             {"example_elements": "set_elements"}),
    "sorted_sets": ("sorted_set_keys",
                    {"sizes": "sorted_set_sizes", "element_sizes": "sorted_set_element_sizes"},
                    {"example_elements": "sorted_set_elements"}),
    "hashes": ("hash_keys",
               {"sizes": "hash_sizes", "element_sizes": "hash_element_sizes",
                "value_sizes": "hash_value_sizes"},
               {"example_elements": "hash_elements", "example_values": "hash_values"}),
    "lists": ("list_keys", {"sizes": "list_sizes", "element_sizes": "list_element_sizes"},
              {"example_elements": "list_elements"}),
}


def _finite(x: float) -> Optional[float]:
    return None if math.isnan(x) else round(x, 2)


def _frequency_rows(histogram: Histogram, total: int) -> List[Dict[str, Any]]:
    return [
        {"size": size, "count": count, "percentage": round(100.0 * count / total, 2)}
        for size, count in sorted(histogram.items())
    ]


def _table(histogram: Histogram, threshold: float) -> Dict[str, Any]:
    stats = compute_statistics(histogram)
    trimmed = dict(histogram)
    total = trim_and_sum(trimmed, threshold)
    powers = compute_power_of_two_histogram(histogram)
    return {
        "statistics": {
            "min": stats.min,
            "max": stats.max,
            "mean": _finite(stats.mean),
            "std_dev": _finite(stats.std_dev),
        },
        "total": total,
        "frequencies": _frequency_rows(trimmed, total) if total else [],
        "power_of_two": _frequency_rows(powers, total) if total else [],
    }


def build_report(results: Results, total_key_count: Optional[int] = None,
                 threshold: float = DEFAULT_THRESHOLD, name: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the render-ready view of one bucket.

    Example sets are trimmed back to their caps here, since merged
    Results may carry more than that.

    Args:
        results: The bucket to report on (left unmodified)
        total_key_count: Keys in the sampled instance(s), if known
        threshold: Share at or below which frequency rows are dropped
        name: Bucket name to report under; defaults to results.name

    Returns:
        A JSON-serializable dictionary; only types that were seen appear
    """
    trimmed = results.trimmed()
    report: Dict[str, Any] = {
        "name": name if name is not None else trimmed.name,
        "sampled_keys": trimmed.key_count,
        "total_key_count": total_key_count,
        "types": {},
    }
    for section, (keys_attr, histograms, examples) in SECTIONS.items():
        keys = getattr(trimmed, keys_attr)
        if not keys:
            continue
        body: Dict[str, Any] = {"example_keys": keys.to_list()}
        for label, attr in examples.items():
            body[label] = getattr(trimmed, attr).to_list()
        for label, attr in histograms.items():
            body[label] = _table(getattr(trimmed, attr), threshold)
        report["types"][section] = body
    return report


def _file_safe(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]+", "_", name) or "bucket"


def write_reports(results_map: Mapping[str, Results], directory: str,
                  total_key_count: Optional[int] = None) -> List[Path]:
    """
    Write one JSON report per bucket as output-<bucket>.json.

    Characters that are not file-name safe become "_". Buckets that end
    up with the same file name get a numeric suffix (output-a_b-2.json).
    The Results in `results_map` are not modified.

    Returns:
        The paths written
    """
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    written = []
    used = set()
    for bucket, results in results_map.items():
        stem = _file_safe(bucket)
        candidate, n = stem, 1
        while candidate in used:
            n += 1
            candidate = f"{stem}-{n}"
        used.add(candidate)
        path = out_dir / f"output-{candidate}.json"
        with open(path, "w") as f:
            json.dump(build_report(results, total_key_count, name=results.name or bucket), f, indent=2)
        written.append(path)
    return written
