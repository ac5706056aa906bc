"""
Project Aggregate Module

All changes to a project's money, hours, children and team-lead assignment go
through ``ProjectAggregate``. Each operation validates its input first, then
applies the change to the owned collection, then recomputes the derived totals
with the same ``compute_totals`` used by the explicit recalculation, so the
incrementally maintained totals always equal a from-scratch recalculation.

Nothing here touches the database. The acting user is passed in explicitly;
persistence (and the version check that guards it) lives in
app.services.projects.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Generic, Iterable, Iterator, List, Optional, Type, TypeVar

import pydantic

from app.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from app.models.project import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    ChildRecord,
    Milestone,
    MilestoneStatus,
    Payment,
    Project,
    ProjectCategory,
    ProjectStatus,
    TimeEntry,
)
from app.models.user import User

ChildT = TypeVar("ChildT", bound=ChildRecord)

# Fields of a child record that callers may never overwrite
_IMMUTABLE_CHILD_FIELDS = {"id", "added_by", "added_at"}

# Project fields an admin may edit directly
EDITABLE_PROJECT_FIELDS = {
    "project_name", "description", "deadline", "client_name", "client_email",
    "client_phone", "project_platform", "profile", "budget", "timeline",
    "technologies", "scope_policy", "estimated_hours", "priority",
    "payment_schedule", "status", "fixed_amount", "hourly_rate", "progress",
    "visible_to_team_leads",
}

# Editable fields backed by NOT NULL columns
REQUIRED_PROJECT_FIELDS = {
    "project_name", "client_name", "status", "priority", "payment_schedule",
    "fixed_amount", "hourly_rate", "estimated_hours", "progress",
    "visible_to_team_leads", "technologies",
}


def _value(member: Any) -> Any:
    # Enum members are stored by value
    return getattr(member, "value", member)


class OwnedCollection(Generic[ChildT]):
    """
    Records exclusively owned by one project, keyed by their id.

    Insertion order is preserved. Every record is validated against ``model``
    before it enters the collection, so a failed add or update leaves the
    collection untouched.
    """

    def __init__(self, model: Type[ChildT], label: str, records: Iterable[Any] = ()):
        self._model = model
        self.label = label
        self._records: Dict[str, ChildT] = {}
        for raw in records:
            record = raw if isinstance(raw, model) else self.build(**raw)
            self._records[record.id] = record

    def __iter__(self) -> Iterator[ChildT]:
        return iter(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, child_id: object) -> bool:
        return child_id in self._records

    def build(self, **fields: Any) -> ChildT:
        """Validate ``fields`` into a record without adding it."""
        try:
            return self._model(**fields)
        except pydantic.ValidationError as exc:
            details = {".".join(str(p) for p in err["loc"]): err["msg"] for err in exc.errors()}
            raise ValidationError(f"Invalid {self.label.lower()}", details=details) from exc

    def get(self, child_id: str) -> ChildT:
        try:
            return self._records[child_id]
        except KeyError:
            raise NotFoundError(self.label, child_id) from None

    def add(self, record: ChildT) -> ChildT:
        if record.id in self._records:
            raise ConflictError(f"{self.label} {record.id} already exists")
        self._records[record.id] = record
        return record

    def update(self, child_id: str, changes: Dict[str, Any]) -> ChildT:
        current = self.get(child_id)
        changes = {k: v for k, v in changes.items() if k not in _IMMUTABLE_CHILD_FIELDS}
        updated = self.build(**{**current.model_dump(), **changes})
        self._records[child_id] = updated
        return updated

    def remove(self, child_id: str) -> ChildT:
        record = self.get(child_id)
        del self._records[child_id]
        return record

    def dump(self) -> List[dict]:
        return [record.model_dump(mode="json") for record in self._records.values()]


@dataclass(frozen=True)
class ProjectTotals:
    total_amount: float
    paid_amount: float
    pending_amount: float
    actual_hours: float


def _sum(records: Optional[List[dict]], key: str) -> float:
    return sum(float(record.get(key) or 0) for record in records or [])


def compute_totals(project: Project) -> ProjectTotals:
    """
    Derive the project's totals from its pricing inputs and child collections.

    - fixed: total = fixed_amount
    - hourly: total = hourly_rate * sum(time entry hours)
    - milestone: total = sum(milestone amounts)
    - always: paid = sum(payments), pending = total - paid

    Pending is not clamped, so an overpaid project reports a negative balance.
    """
    category = ProjectCategory(project.category)
    actual_hours = _sum(project.time_entries, "hours")

    if category is ProjectCategory.FIXED:
        total_amount = float(project.fixed_amount or 0)
    elif category is ProjectCategory.HOURLY:
        total_amount = float(project.hourly_rate or 0) * actual_hours
    else:
        total_amount = _sum(project.milestones, "amount")

    paid_amount = _sum(project.payments, "amount")
    return ProjectTotals(
        total_amount=total_amount,
        paid_amount=paid_amount,
        pending_amount=total_amount - paid_amount,
        actual_hours=actual_hours,
    )


def recalculate_all(project: Project) -> ProjectTotals:
    """Overwrite every derived field of ``project`` with a fresh computation."""
    totals = compute_totals(project)
    project.total_amount = totals.total_amount
    project.paid_amount = totals.paid_amount
    project.pending_amount = totals.pending_amount
    project.actual_hours = totals.actual_hours
    return totals


class ProjectAggregate:
    """
    Invariant-preserving wrapper around a Project row.

    ``loaded_version`` remembers the version the row had when it was read; the
    store uses it as the compare-and-swap key when saving.
    """

    def __init__(self, project: Project):
        self.project = project
        self.loaded_version = project.version
        self.time_entries = OwnedCollection(TimeEntry, "Time entry", project.time_entries or [])
        self.milestones = OwnedCollection(Milestone, "Milestone", project.milestones or [])
        self.payments = OwnedCollection(Payment, "Payment", project.payments or [])

    @property
    def category(self) -> ProjectCategory:
        return ProjectCategory(self.project.category)

    @property
    def status(self) -> ProjectStatus:
        return ProjectStatus(self.project.status)

    def _require_category(self, category: ProjectCategory, message: str) -> None:
        if self.category is not category:
            raise ValidationError(message)

    def _sync(self, actor: Optional[User] = None) -> ProjectTotals:
        self.project.time_entries = self.time_entries.dump()
        self.project.milestones = self.milestones.dump()
        self.project.payments = self.payments.dump()
        if actor is not None:
            self.project.updated_by = actor.id
        return recalculate_all(self.project)

    def recalculate(self, actor: Optional[User] = None) -> ProjectTotals:
        return self._sync(actor)

    # === Time entries ===

    def add_time_entry(self, data: Dict[str, Any], actor: User) -> TimeEntry:
        self._require_category(
            ProjectCategory.HOURLY, "Time entries can only be added to hourly projects"
        )
        fields = {k: v for k, v in data.items() if v is not None and k not in _IMMUTABLE_CHILD_FIELDS}
        entry = self.time_entries.build(**fields, added_by=actor.id)
        self.time_entries.add(entry)
        self._sync(actor)
        return entry

    def update_time_entry(self, entry_id: str, changes: Dict[str, Any], actor: User) -> TimeEntry:
        changes = dict(changes)
        if "approved" in changes:
            approved = bool(changes["approved"])
            changes["approved_by"] = actor.id if approved else None
            changes["approved_at"] = datetime.utcnow() if approved else None
        entry = self.time_entries.update(entry_id, changes)
        self._sync(actor)
        return entry

    def delete_time_entry(self, entry_id: str, actor: User) -> TimeEntry:
        entry = self.time_entries.remove(entry_id)
        self._sync(actor)
        return entry

    # === Milestones ===

    def add_milestone(self, data: Dict[str, Any], actor: User) -> Milestone:
        self._require_category(
            ProjectCategory.MILESTONE, "Milestones can only be added to milestone projects"
        )
        fields = {k: v for k, v in data.items() if v is not None and k != "id"}
        fields.update(order=len(self.milestones), status=MilestoneStatus.PENDING)
        milestone = self.milestones.build(**fields)
        self.milestones.add(milestone)
        self._sync(actor)
        return milestone

    def update_milestone(self, milestone_id: str, changes: Dict[str, Any], actor: User) -> Milestone:
        changes = dict(changes)
        current = self.milestones.get(milestone_id)
        status = changes.get("status")
        if status is not None and MilestoneStatus(status) is MilestoneStatus.COMPLETED \
                and current.status != MilestoneStatus.COMPLETED:
            changes.setdefault("completed_date", datetime.utcnow())
            changes.setdefault("completed_by", actor.id)
        milestone = self.milestones.update(milestone_id, changes)
        self._sync(actor)
        return milestone

    def delete_milestone(self, milestone_id: str, actor: User) -> Milestone:
        milestone = self.milestones.remove(milestone_id)
        # Payments stay paid; only their link to the milestone goes away
        for payment in self.payments:
            if payment.milestone_id == milestone_id:
                self.payments.update(payment.id, {"milestone_id": None})
        self._sync(actor)
        return milestone

    # === Payments ===

    def add_payment(self, data: Dict[str, Any], actor: User) -> Payment:
        fields = {k: v for k, v in data.items() if v is not None and k not in _IMMUTABLE_CHILD_FIELDS}
        milestone = None
        if fields.get("milestone_id"):
            milestone = self.milestones.get(fields["milestone_id"])
        payment = self.payments.build(**fields, added_by=actor.id)

        self.payments.add(payment)
        if milestone is not None:
            self._complete_if_paid(milestone, payment, actor)
        self._sync(actor)
        return payment

    def update_payment(self, payment_id: str, changes: Dict[str, Any], actor: User) -> Payment:
        changes = {k: v for k, v in changes.items() if k != "milestone_id"}
        payment = self.payments.update(payment_id, changes)
        if payment.milestone_id and payment.milestone_id in self.milestones:
            self._complete_if_paid(self.milestones.get(payment.milestone_id), payment, actor)
        self._sync(actor)
        return payment

    def _complete_if_paid(self, milestone: Milestone, payment: Payment, actor: User) -> None:
        # A single payment covering the milestone amount completes it
        if payment.amount >= milestone.amount and milestone.status != MilestoneStatus.COMPLETED:
            self.milestones.update(milestone.id, {
                "status": MilestoneStatus.COMPLETED,
                "completed_date": datetime.utcnow(),
                "completed_by": actor.id,
            })

    def delete_payment(self, payment_id: str, actor: User) -> Payment:
        payment = self.payments.remove(payment_id)
        self._sync(actor)
        return payment

    # === Direct edits ===

    def update_fields(self, changes: Dict[str, Any], actor: User) -> ProjectTotals:
        """
        Apply an admin edit and recompute the totals.

        Raises:
            ValidationError: Unknown/derived field, category change, or a
                non-positive price input for the project's own category
        """
        changes = dict(changes)
        category = changes.pop("category", None)
        if category is not None and ProjectCategory(category) is not self.category:
            raise ValidationError("Project category cannot be changed")

        unknown = set(changes) - EDITABLE_PROJECT_FIELDS
        if unknown:
            raise ValidationError(
                "These fields cannot be edited directly", details={"fields": sorted(unknown)}
            )
        cleared = sorted(f for f in REQUIRED_PROJECT_FIELDS if f in changes and changes[f] is None)
        if cleared:
            raise ValidationError("These fields cannot be empty", details={"fields": cleared})

        for field, category_required in (
            ("fixed_amount", ProjectCategory.FIXED),
            ("hourly_rate", ProjectCategory.HOURLY),
        ):
            if field not in changes:
                continue
            if self.category is not category_required:
                # Inputs of another pricing plan stay at zero
                changes.pop(field)
            elif not changes[field] or changes[field] <= 0:
                raise ValidationError(f"{field.replace('_', ' ').capitalize()} must be greater than 0")

        for field, value in changes.items():
            setattr(self.project, field, _value(value))
        return self._sync(actor)

    def set_client_status(self, client_status: Any, actor: User) -> None:
        self.project.client_status = _value(client_status)
        self.project.updated_by = actor.id

    # === Team-lead workflow ===

    def pick(self, actor: User, active_count: int, limit: int) -> None:
        """
        Claim the project for ``actor``.

        Args:
            actor: Team lead picking the project
            active_count: Projects ``actor`` already holds in an active status
            limit: Maximum number of active projects per team lead

        Raises:
            ForbiddenError: The project is hidden from team leads
            ConflictError: Already claimed, not in an active status, or the
                team lead is at the limit
        """
        project = self.project
        if not project.visible_to_team_leads:
            raise ForbiddenError("This project is not available for team leads to pick")
        if project.team_lead_id is not None:
            raise ConflictError("This project is already assigned to a team lead")
        if self.status not in ACTIVE_STATUSES:
            raise ConflictError(f"Cannot pick projects with status: {self.status.value}")
        if active_count >= limit:
            raise ConflictError(
                f"You have reached the maximum limit of {limit} concurrent projects"
            )

        project.team_lead_id = actor.id
        if self.status is ProjectStatus.PENDING:
            project.status = ProjectStatus.IN_PROGRESS.value
        project.updated_by = actor.id

    def release(self, actor: User) -> None:
        """
        Give the project back to the pool; its employee staffing is discarded.

        Raises:
            ForbiddenError: ``actor`` does not hold the project
            ConflictError: The project is completed or cancelled
        """
        project = self.project
        if project.team_lead_id is None or project.team_lead_id != actor.id:
            raise ForbiddenError("You can only release projects assigned to you")
        if self.status in TERMINAL_STATUSES:
            raise ConflictError("Cannot release completed or cancelled projects")

        project.team_lead_id = None
        project.status = ProjectStatus.PENDING.value
        project.employees = []
        project.updated_by = actor.id

    def assign_team_lead(self, team_lead_id: str, actor: User) -> None:
        self.project.team_lead_id = team_lead_id
        self.project.updated_by = actor.id

    def _require_holder(self, actor: User) -> None:
        if not actor.is_privileged and self.project.team_lead_id != actor.id:
            raise ForbiddenError("You can only staff projects assigned to you")

    def assign_employees(self, employee_ids: Iterable[str], actor: User) -> None:
        """
        Replace the staffing list.

        Raises:
            ForbiddenError: ``actor`` is neither an admin nor the current holder
        """
        self._require_holder(actor)
        # dict.fromkeys drops duplicates and keeps order
        self.project.employees = list(dict.fromkeys(employee_ids))
        self.project.updated_by = actor.id

    def remove_employee(self, employee_id: str, actor: User) -> None:
        self._require_holder(actor)
        employees = list(self.project.employees or [])
        if employee_id not in employees:
            raise NotFoundError("Employee on project", employee_id)
        employees.remove(employee_id)
        self.project.employees = employees
        self.project.updated_by = actor.id


def new_project(data: Dict[str, Any], actor: User) -> Project:
    """
    Build a project with category-appropriate pricing inputs and initial totals.

    Raises:
        ValidationError: Missing price input for the category, or milestones
            supplied for a non-milestone project
    """
    data = {k: v for k, v in data.items() if v is not None}
    category = ProjectCategory(data.pop("category"))
    milestones = data.pop("milestones", None) or []
    fixed_amount = data.pop("fixed_amount", None)
    hourly_rate = data.pop("hourly_rate", None)

    if category is ProjectCategory.FIXED and (not fixed_amount or fixed_amount <= 0):
        raise ValidationError("Fixed amount is required for fixed projects")
    if category is ProjectCategory.HOURLY and (not hourly_rate or hourly_rate <= 0):
        raise ValidationError("Hourly rate is required for hourly projects")
    if milestones and category is not ProjectCategory.MILESTONE:
        raise ValidationError("Milestones can only be added to milestone projects")

    project = Project(
        **{k: _value(v) for k, v in data.items()},
        category=category.value,
        fixed_amount=float(fixed_amount) if category is ProjectCategory.FIXED else 0,
        hourly_rate=float(hourly_rate) if category is ProjectCategory.HOURLY else 0,
        created_by=actor.id,
        updated_by=actor.id,
    )
    aggregate = ProjectAggregate(project)
    for milestone in milestones:
        aggregate.add_milestone(milestone, actor)
    aggregate.recalculate(actor)
    return project
