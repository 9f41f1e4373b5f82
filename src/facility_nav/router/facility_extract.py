# facility_extract.py
# Extracts facility points (shelters, pharmacies, ...) from an OSM extract
# into the tabular layout facility_store reads.
#
# Needs: osmnx, shapely, pandas
#
#   python -m facility_nav.router.facility_extract kyiv.osm.gz 50.45 30.52 8000 facilities.csv

import argparse
import logging
from typing import Dict, List, Optional, Tuple, Union

import osmnx as ox
import pandas as pd
from shapely.geometry import Point as ShapelyPoint

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tags and kind labels
# ---------------------------------------------------------------------------

DEFAULT_TAGS: Dict[str, Union[bool, str, List[str]]] = {
    "amenity": ["shelter", "pharmacy", "hospital"],
    "emergency": ["assembly_point"],
    "building": ["bunker"],
    "railway": ["station"],      # metro stations double as shelters
}

# OSM tag → dataset column
ATTRIBUTE_COLUMNS: Dict[str, str] = {
    "name": "title",
    "addr:street": "address",
    "addr:city": "district",
    "phone": "tel",
    "opening_hours": "workingTime",
    "description": "description",
    "website": "linkFull",
}


def _tag(row, key: str) -> str:
    value = row.get(key)
    return value if isinstance(value, str) else ""


def classify_kind(row) -> str:
    """Dataset "kind" label for one OSM feature row."""
    amenity = _tag(row, "amenity")
    if amenity == "shelter" or _tag(row, "building") == "bunker":
        return "shelter"
    if _tag(row, "emergency") == "assembly_point":
        return "assembly_point"
    if amenity in ("pharmacy", "hospital"):
        return amenity
    if _tag(row, "station") == "subway":
        return "metro"
    return "other"


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def extract_facilities(
    osm_path: str,
    tags: Optional[Dict] = None,
    center_latlon: Tuple[float, float] = (50.4501, 30.5234),
    radius_m: float = 8000.0,
) -> pd.DataFrame:
    """
    Pull point facilities within radius_m of center_latlon out of an OSM file.

    Polygons (building outlines) are reduced to their centroid so every
    facility has one coordinate.

    Returns:
        DataFrame with lat, lng, kind and the ATTRIBUTE_COLUMNS fields.
        Empty if nothing matched.
    """
    tags = tags or DEFAULT_TAGS
    gdf = ox.features_from_xml(osm_path, tags=tags)
    if gdf.empty:
        logger.warning(f"[Extract] No features match in {osm_path}.")
        return pd.DataFrame()

    gdf = gdf.to_crs(4326)
    gdf = gdf.explode(index_parts=False)
    is_point = gdf.geometry.geom_type == "Point"
    gdf.loc[~is_point, "geometry"] = gdf.loc[~is_point].to_crs(gdf.estimate_utm_crs()).centroid.to_crs(4326)

    gdf["kind"] = [classify_kind(r) for _, r in gdf.iterrows()]

    # Distance filter in a metric projection
    gdf_proj = ox.projection.project_gdf(gdf)
    center = ShapelyPoint(center_latlon[1], center_latlon[0])  # lon, lat
    center_proj, _ = ox.projection.project_geometry(center, crs="EPSG:4326", to_crs=gdf_proj.crs)
    dists = gdf_proj.geometry.distance(center_proj)
    gdf_sel = gdf.loc[dists <= radius_m]

    if gdf_sel.empty:
        logger.warning(f"[Extract] Nothing within {radius_m:.0f} m of {center_latlon}.")
        return pd.DataFrame()

    df = pd.DataFrame({
        "lat": gdf_sel.geometry.y.values,
        "lng": gdf_sel.geometry.x.values,
        "kind": gdf_sel["kind"].values,
    })
    for osm_key, column in ATTRIBUTE_COLUMNS.items():
        values = gdf_sel[osm_key] if osm_key in gdf_sel.columns else pd.Series([None] * len(gdf_sel))
        df[column] = values.where(values.notna(), None).values

    # Same building mapped as node and way
    df = df.drop_duplicates(subset=["lat", "lng"]).reset_index(drop=True)
    logger.info(f"[Extract] {len(df)} facilities extracted.")
    return df


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    parser = argparse.ArgumentParser(description="Extract facility points from an OSM file.")
    parser.add_argument("osm_path", help="Path to .osm / .osm.gz extract")
    parser.add_argument("lat", type=float, help="Centre latitude")
    parser.add_argument("lng", type=float, help="Centre longitude")
    parser.add_argument("radius_m", type=float, help="Search radius in metres")
    parser.add_argument("out_csv", help="Output CSV path")
    args = parser.parse_args()

    df = extract_facilities(args.osm_path, DEFAULT_TAGS, (args.lat, args.lng), args.radius_m)
    if df.empty:
        print(f"{args.out_csv}: no records")
        return
    df.to_csv(args.out_csv, index=False)
    print(f"{args.out_csv}: {len(df)} records saved")


if __name__ == "__main__":
    main()
