"""
Daybook Sync

Offline-first synchronization core for a small-business back office.
Lets a day's financial entry be recorded while disconnected, keeps it
durably on the device, and reconciles it with the remote store later.

DESIGN PRINCIPLES:
1. Nothing captured offline is silently dropped
2. Every queued entry lands remotely at most once
3. Queue order is capture order
4. One failing entry never blocks the rest of the batch
5. Remote backend and local store are swappable
"""

__version__ = "1.0.0"
__author__ = "Daybook Team"
