from __future__ import annotations

import json
from typing import List, Sequence

from ..models import Cluster, TimeBlock

_SIGNAL_BADGE = {
    "breaking": "BREAKING",
    "developing": "Developing",
    "stabilized": "Stabilized",
}


def format_cluster_title(cluster: Cluster) -> str:
    badge = _SIGNAL_BADGE.get(cluster.signal, cluster.signal)
    cat = cluster.category or "Uncategorized"
    return f"[{badge}] [{cat}] {cluster.headline}"


def format_cluster(cluster: Cluster) -> str:
    sources_md = "\n".join(f"  - [{s.source_name}]({s.source_url})" for s in cluster.sources) or "  - -"
    return (
        f"#### {format_cluster_title(cluster)}\n\n"
        f"{cluster.summary or '(no summary)'}\n\n"
        f"- Confidence: {cluster.confidence} "
        f"({cluster.source_count} source(s), {cluster.verified_source_count} verified)\n"
        f"- First published: {cluster.first_published.isoformat()}\n"
        f"- Last updated: {cluster.last_updated.isoformat()}\n"
        f"- Sources:\n{sources_md}\n"
    )


def format_digest(blocks: Sequence[TimeBlock]) -> str:
    """Render clustered time blocks as a Markdown digest."""
    if not blocks:
        return "_No stories in the current window._\n"
    lines: List[str] = []
    for block in blocks:
        lines.append(f"### {block.label}\n")
        for cluster in block.clusters:
            lines.append(format_cluster(cluster))
    return "\n".join(lines)


def digest_to_json(blocks: Sequence[TimeBlock]) -> str:
    payload = [
        {"id": b.id, "label": b.label, "clusters": [c.to_dict() for c in b.clusters]}
        for b in blocks
    ]
    return json.dumps(payload, ensure_ascii=False, indent=2)
