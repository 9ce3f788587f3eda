"""Real-time notification channels."""

from scribe.realtime.channels import ChannelRegistry, Subscription

__all__ = ["ChannelRegistry", "Subscription"]
