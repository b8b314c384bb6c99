from .producer import event_producer, EventProducer

__all__ = ["event_producer", "EventProducer"]
