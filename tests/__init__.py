"""
Booking Demand Test Suite

- test_ingest.py - CSV columns, arrival date assembly, segment filter
- test_series_store.py - aggregation, global-calendar padding, split
- test_seasonal.py - seasonal transform registry
- test_metrics.py - MAE contract
- test_models.py - real fitters on synthetic series
- test_grid.py - cross product and name resolution
- test_selection.py - evaluation sentinel, tie-break, best per series
- test_pipeline_smoke.py - end-to-end on a synthetic bookings CSV
"""
