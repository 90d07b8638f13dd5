"""
Energy Forecast Test Suite

Tests organized by pipeline step:
- test_ingest.py - CSV download and schema gates
- test_prepare.py - cleaning (sentinel, labels, units, aggregation)
- test_validate.py - series extraction and gap detection
- test_transforms.py - log / differencing transforms
- test_selection.py - AIC selection, tie-break, failure tolerance
- test_forecasting.py - forecast and confidence band back-transform
- test_backtesting.py - holdout validation
- test_evaluation.py - holdout scoring (MAPE, MAE, RMSE, coverage)
- test_pipeline_smoke.py - end-to-end run and CLI (synthetic data)
"""
