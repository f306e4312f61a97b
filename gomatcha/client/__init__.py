from gomatcha.client.status_poller import OrderStatusPoller, PollOutcome

__all__ = ["OrderStatusPoller", "PollOutcome"]
