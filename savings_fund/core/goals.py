"""Personal savings goals, one collection per user."""

from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from savings_fund.audit import AuditLogger
from savings_fund.core.authorization import AuthorizationGate, authenticated
from savings_fund.core.errors import EntityNotFoundError, ValidationFailedError
from savings_fund.models.fund import (
    OperationResult,
    SavingsGoal,
    SavingsGoalUpdate,
    apply_update,
)
from savings_fund.services.storage import FundRepository
from savings_fund.validation import LoanValidator, has_errors, summarize


def goal_progress(goal: SavingsGoal) -> Decimal:
    """Percentage of the target reached, capped at 100."""
    return min(goal.current_amount / goal.target_amount * 100, Decimal("100"))


class SavingsGoalService:
    def __init__(
        self,
        repository: FundRepository,
        gate: Optional[AuthorizationGate] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._repository = repository
        self._audit = audit_logger or AuditLogger()
        self._gate = gate or AuthorizationGate(repository, self._audit)
        self._clock = clock or datetime.now

    def list_goals(self, user_id: str) -> list[SavingsGoal]:
        return self._repository.load_goals(user_id)

    @authenticated
    def add_goal(
        self,
        name: str,
        target_amount: Decimal,
        deadline: Optional[date] = None,
        description: str = "",
        current_amount: Decimal = Decimal("0"),
        *,
        acting_user_id: str,
    ) -> OperationResult:
        goal = SavingsGoal(
            name=name,
            target_amount=target_amount,
            current_amount=current_amount,
            deadline=deadline,
            description=description or "",
            created_at=self._clock(),
        )
        goals = self._repository.load_goals(acting_user_id)
        goals.append(goal)
        self._repository.save_goals(acting_user_id, goals)

        self._audit.log_goal_changed(goal.id, "added", acting_user_id)
        return OperationResult.ok(goal)

    @authenticated
    def update_goal(
        self,
        goal_id: str,
        update: SavingsGoalUpdate,
        *,
        acting_user_id: str,
    ) -> OperationResult:
        goals = self._repository.load_goals(acting_user_id)
        index = self._index_of(goals, goal_id)
        goals[index] = apply_update(goals[index], update)
        self._repository.save_goals(acting_user_id, goals)

        self._audit.log_goal_changed(goal_id, "updated", acting_user_id)
        return OperationResult.ok(goals[index])

    @authenticated
    def contribute(
        self,
        goal_id: str,
        amount: Decimal,
        *,
        acting_user_id: str,
    ) -> OperationResult:
        """Add money towards a goal. Contributions past the target are kept."""
        amount = Decimal(str(amount))
        issues = LoanValidator().validate_payment(amount)
        if has_errors(issues):
            raise ValidationFailedError(summarize(issues), issues)

        goals = self._repository.load_goals(acting_user_id)
        index = self._index_of(goals, goal_id)
        goal = goals[index]
        goals[index] = goal.model_copy(update={"current_amount": goal.current_amount + amount})
        self._repository.save_goals(acting_user_id, goals)

        self._audit.log_goal_changed(goal_id, "contribution", acting_user_id)
        return OperationResult.ok(goals[index])

    @authenticated
    def delete_goal(self, goal_id: str, *, acting_user_id: str) -> OperationResult:
        goals = self._repository.load_goals(acting_user_id)
        removed = goals.pop(self._index_of(goals, goal_id))
        self._repository.save_goals(acting_user_id, goals)

        self._audit.log_goal_changed(goal_id, "deleted", acting_user_id)
        return OperationResult.ok(removed)

    @staticmethod
    def _index_of(goals: list[SavingsGoal], goal_id: str) -> int:
        index = next((i for i, g in enumerate(goals) if g.id == goal_id), None)
        if index is None:
            raise EntityNotFoundError(f"Savings goal not found: {goal_id}")
        return index
