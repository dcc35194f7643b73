from datetime import datetime

from pycronqueue.common.decisions import BaseDecision
from pycronqueue.common.job import Job


class ElectDecisionContext:
    def __init__(self, job: Job, candidate_decision: BaseDecision, now: datetime):
        self.job = job
        self.candidate_decision = candidate_decision
        self.now = now
