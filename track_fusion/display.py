"""
Display helpers: human-readable descriptions and symbol codes for tracks,
chosen by track type and enriched from the bundled data maps.
"""

from typing import Optional

from . import data_maps
from .track import Track, TrackType


def _ship_type_lookup(table, ship_type: Optional[int]) -> Optional[str]:
    # AIS ship types come in decades (e.g. 60-69 passenger); fall back to the decade
    if ship_type is None:
        return None
    return table.get(str(ship_type)) or table.get(str(ship_type - ship_type % 10))


def _airline_code(track: Track) -> Optional[str]:
    callsign = track.callsign or ""
    if len(callsign) >= 4 and callsign[:3].isalpha():
        return callsign[:3].upper()
    return None


def symbol_for(track: Track) -> str:
    """Most specific symbol code available for the track."""
    if track.track_type == TrackType.SHIP:
        return _ship_type_lookup(data_maps.SHIP_TYPE_TO_SYMBOL, track.ship_type) or track.symbol_code

    if track.track_type == TrackType.AIRCRAFT:
        airline = _airline_code(track)
        if airline and airline in data_maps.AIRCRAFT_AIRLINE_CODE_TO_SYMBOL:
            return data_maps.AIRCRAFT_AIRLINE_CODE_TO_SYMBOL[airline]
        category = getattr(track, 'category', None)
        if category and category in data_maps.AIRCRAFT_CATEGORY_TO_SYMBOL:
            return data_maps.AIRCRAFT_CATEGORY_TO_SYMBOL[category]

    return track.symbol_code


def display_description(track: Track) -> str:
    """One-line description of what the track is."""
    if track.track_type == TrackType.SHIP:
        parts = [_ship_type_lookup(data_maps.SHIP_TYPE_TO_DESCRIPTION, track.ship_type) or "Ship"]
        if track.destination:
            parts.append(f"to {track.destination}")
        return " ".join(parts)

    if track.track_type == TrackType.AIRCRAFT:
        parts = []
        airline = _airline_code(track)
        if airline and airline in data_maps.AIRCRAFT_AIRLINE_CODE_TO_OPERATOR:
            parts.append(data_maps.AIRCRAFT_AIRLINE_CODE_TO_OPERATOR[airline])
        category = getattr(track, 'category', None)
        if category and category in data_maps.AIRCRAFT_CATEGORY_TO_DESCRIPTION:
            parts.append(data_maps.AIRCRAFT_CATEGORY_TO_DESCRIPTION[category])
        aircraft_type = getattr(track, 'aircraft_type', None)
        if aircraft_type:
            parts.append(data_maps.AIRCRAFT_TYPE_SHORT_TO_LONG.get(aircraft_type, aircraft_type))
        return ", ".join(parts) or "Aircraft"

    if track.track_type == TrackType.AIS_ATON:
        return "Aid to Navigation"
    if track.track_type == TrackType.AIS_SHORE_STATION:
        return "AIS Shore Station"
    if track.track_type == TrackType.AIRPORT:
        return getattr(track, 'icao_code', None) or "Airport"

    # APRS tracks and base stations carry no description
    return ""


def to_export_dict(track: Track) -> dict:
    """``Track.to_api_dict`` with the enriched symbol and description applied."""
    api_dict = track.to_api_dict()
    api_dict['symbol'] = symbol_for(track)
    api_dict['description'] = display_description(track)
    return api_dict
