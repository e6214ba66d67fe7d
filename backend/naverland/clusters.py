import logging
from typing import Any, List, Tuple

import httpx

from backend.naverland.client import fetch_json
from backend.naverland.config import CLUSTER_LIST_URL, MAX_CLUSTERS
from backend.naverland.errors import UpstreamError
from backend.naverland.regions import build_cluster_params
from backend.py_models.property import SearchOptions
from backend.py_models.records import Location, LocationCluster, Outcome

log = logging.getLogger("naverland")

CLUSTER_DETAIL_ZOOM = 16


def parse_clusters(data: Any) -> List[LocationCluster]:
    """
    Read `data.ARTICLE[]` from a clusterList payload. Raises UpstreamError when
    the envelope is not what we expect; individual malformed cells are skipped.
    """
    if not isinstance(data, dict):
        raise UpstreamError("cluster payload is not an object")
    code = data.get("code")
    if code is not None and str(code).lower() != "success":
        raise UpstreamError(f"cluster payload status {code!r}")
    body = data.get("data")
    if not isinstance(body, dict):
        raise UpstreamError("cluster payload has no data object")
    cells = body.get("ARTICLE")
    if cells is None:
        return []
    if not isinstance(cells, list):
        raise UpstreamError("cluster payload ARTICLE is not a list")

    out: List[LocationCluster] = []
    for cell in cells:
        if not isinstance(cell, dict) or not cell.get("lgeo"):
            continue
        try:
            out.append(LocationCluster(
                cluster_id=str(cell["lgeo"]),
                count=int(cell.get("count") or 0),
                lat=cell.get("lat"),
                lon=cell.get("lon"),
                zoom=cell.get("z"),
            ))
        except (TypeError, ValueError) as e:
            log.debug("skip cluster cell %r: %s", cell.get("lgeo"), e)
    return out


def rank_clusters(clusters: List[LocationCluster], limit: int = MAX_CLUSTERS) -> List[LocationCluster]:
    """Densest first; stable for equal counts. Capped at `limit`."""
    return sorted(clusters, key=lambda c: c.count, reverse=True)[:limit]


def cluster_location(cluster: LocationCluster) -> Location:
    return Location(
        kind="cluster",
        code=cluster.cluster_id,
        label=f"cluster {cluster.cluster_id} ({cluster.count})",
        lat=cluster.lat,
        lon=cluster.lon,
        zoom=cluster.zoom or CLUSTER_DETAIL_ZOOM,
    )


async def discover_clusters(
    client: httpx.AsyncClient,
    bbox: Tuple[float, float, float, float],
    options: SearchOptions,
    limit: int = MAX_CLUSTERS,
) -> Outcome[List[LocationCluster]]:
    """One aggregate query over the box; failure yields an empty list."""
    params = build_cluster_params(bbox, options)
    try:
        data = await fetch_json(client, CLUSTER_LIST_URL, params=params)
        clusters = parse_clusters(data)
    except UpstreamError as e:
        return Outcome.fail(str(e), value=[])
    ranked = rank_clusters(clusters, limit=limit)
    log.info("clusters: %d found, processing top %d", len(clusters), len(ranked))
    return Outcome.ok(ranked, total=len(clusters))
