'''
Marketing Dashboard Backend Test Suite

Test Modules:
-------------
- test_metrics.py: extractors, derived metrics, report parsing, date windows
- test_report_client.py: GA4 runReport calls and error mapping
- test_facets.py: facet queries, transforms and fallback estimates
- test_cta_insights.py: CTA insight rules
- test_aggregator.py: full pipeline with a fake GA4 backend
- test_api.py: FastAPI endpoints through TestClient

Run with: pytest marketing_dashboard/tests -v
'''
