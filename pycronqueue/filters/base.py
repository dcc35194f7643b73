# pycronqueue/filters/base.py
from abc import ABC


class JobFilter(ABC):
    def on_decision_election(self, elect_decision_context):
        pass  # Default implementation does nothing
