from middleware.turnstile import TurnstileGate, TurnstileMiddleware, require_turnstile

__all__ = ["TurnstileGate", "TurnstileMiddleware", "require_turnstile"]
