from .scalping import ExampleScalpingStrategy, OrderState

__all__ = ["ExampleScalpingStrategy", "OrderState"]
