"""Live update fan-out.

:class:`~livetrack.hub.registry.SubscriptionRegistry` tracks which channels
watch which order; :class:`~livetrack.hub.broadcast.BroadcastHub` pushes
snapshots to them.
"""
