"""
OSS Ingest - Test Suite

Test Organization:
- test_config.py: Settings loading, validation and env overrides
- test_notifications.py: Notification body decoding
- test_filter.py: Directory/prefix/exclude selection
- test_reader.py: Streaming, gzip and stream release
- test_metadata.py, test_emitter.py: Header metadata and record enrichment
- test_postprocess.py: Backup and delete
- test_pipeline.py, test_scheduler.py: End-to-end processing and the loop
- test_mns.py, test_storage.py: Backend clients

Fixtures are in tests/fixtures/:
- factories.py: Notification bodies, gzip helpers, settings

Run tests:
    $ pytest tests/ -v
"""
