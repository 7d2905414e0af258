from brigade_controller.controller.controller import Controller, FailureHandler
from brigade_controller.controller.reconciler import ReconcileResult, Reconciler

__all__ = ["Controller", "FailureHandler", "ReconcileResult", "Reconciler"]
