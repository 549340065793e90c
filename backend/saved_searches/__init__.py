"""
Saved-search notification pipeline.

This module handles:
- Matching new listings against users' saved search criteria
- Tracking a per-search watermark so each listing is notified once
- Running instant and daily batches under a per-tier run lock
- Auditing every notification attempt
"""
