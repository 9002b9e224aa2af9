from .publisher import EventPublisher, KafkaNotifier

__all__ = ["EventPublisher", "KafkaNotifier"]
