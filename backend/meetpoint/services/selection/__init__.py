"""Selection engine: fair meeting hubs and venues for a group.

Modules:
    config              Centralized thresholds and configuration
    models              Coordinates, participants, candidates, scores
    geo                 Centroid and degree-space proximity helpers
    retry               Bounded retry with injectable sleep
    location_resolver   Station / live / custom locations → coordinates
    scorer              Round-trip matrices and fairness scoring
    hub_selector        Scout → fallback → score → dedup → judge → format
    venue_selector      Search near hub → score → enrich

Pipeline:
    HubSelector.select_hub → caller persists chosen hub
    → VenueSelector.select_venue
"""
