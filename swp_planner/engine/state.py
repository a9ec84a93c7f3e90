# engine/state.py
from __future__ import annotations

import copy
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Mapping, Tuple

from ..data_model import (
    ExpenseRecord,
    IncomeRecord,
    InvestmentRecord,
    LiabilityRecord,
    SWPPlanResult,
    new_record_id,
)
from ..errors import InvalidInputError, RecordNotFoundError, ScenarioNotFoundError
from .amortization import compute_emi
from .storage import load_store, save_store

logger = logging.getLogger(__name__)

BASELINE_ID = "baseline"
RECORD_TYPES = {
    "incomes": IncomeRecord,
    "expenses": ExpenseRecord,
    "investments": InvestmentRecord,
    "liabilities": LiabilityRecord,
}


def _record_class(kind: str):
    try:
        return RECORD_TYPES[kind]
    except KeyError:
        raise InvalidInputError(f"Unknown record kind: {kind!r}") from None


@dataclass
class Scenario:
    id: str
    name: str
    created_at: str
    incomes: List[IncomeRecord] = field(default_factory=list)
    expenses: List[ExpenseRecord] = field(default_factory=list)
    investments: List[InvestmentRecord] = field(default_factory=list)
    liabilities: List[LiabilityRecord] = field(default_factory=list)
    cash: float = 0.0
    swp_plan: Dict[str, Any] | None = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"id": self.id, "name": self.name, "createdAt": self.created_at}
        for kind in RECORD_TYPES:
            payload[kind] = [record.to_row() for record in getattr(self, kind)]
        payload["cash"] = self.cash
        payload["swpPlan"] = self.swp_plan
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Scenario":
        scenario = cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            created_at=str(data.get("createdAt") or ""),
            cash=float(data.get("cash") or 0.0),
            swp_plan=data.get("swpPlan"),
        )
        for kind, record_cls in RECORD_TYPES.items():
            setattr(scenario, kind, [record_cls.from_row(row) for row in data.get(kind) or []])
        return scenario


class ScenarioView:
    """Read-only snapshot of one scenario's records, as the engine sees them."""

    def __init__(self, scenario: Scenario):
        self._id = scenario.id
        self._name = scenario.name
        self._incomes = tuple(scenario.incomes)
        self._expenses = tuple(scenario.expenses)
        self._investments = tuple(scenario.investments)
        self._liabilities = tuple(scenario.liabilities)
        self._cash = scenario.cash

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    def incomes(self) -> Tuple[IncomeRecord, ...]:
        return self._incomes

    def expenses(self) -> Tuple[ExpenseRecord, ...]:
        return self._expenses

    def investments(self) -> Tuple[InvestmentRecord, ...]:
        return self._investments

    def liabilities(self) -> Tuple[LiabilityRecord, ...]:
        return self._liabilities

    def cash(self) -> float:
        return self._cash


def summarize(view: ScenarioView, on: date | None = None) -> Dict[str, float]:
    """Headline totals; incomes past their stop date are left out of ``monthlyIncome``."""
    on = on or date.today()
    return {
        "monthlyIncome": sum(item.monthly_amount() for item in view.incomes() if item.is_active(on)),
        "monthlyExpenses": sum(item.monthly_amount() for item in view.expenses()),
        "sipMonthly": sum(item.monthly_amount for item in view.investments() if item.type == "SIP"),
        "lumpsumTotal": sum(item.amount for item in view.investments() if item.type == "Lumpsum"),
        "liabilityPrincipal": sum(item.principal for item in view.liabilities()),
        "totalEMI": sum(compute_emi(item) for item in view.liabilities()),
        "cash": view.cash(),
    }


class ScenarioState:
    """Scenario store. Any record change drops the scenario's saved SWP plan.

    ``storage_path=None`` keeps everything in memory.
    """

    def __init__(self, storage_path: str | None = "user_data/scenarios.json"):
        self.storage_path = storage_path
        self.scenarios: Dict[str, Scenario] = {}
        self.active_id = BASELINE_ID
        self._load()
        if BASELINE_ID not in self.scenarios:
            self.scenarios[BASELINE_ID] = Scenario(id=BASELINE_ID, name="Baseline", created_at=_now())
            self.active_id = BASELINE_ID
            self._save()

    def _load(self) -> None:
        if not self.storage_path:
            return
        raw = load_store(self.storage_path)
        for item in raw.get("scenarios") or []:
            try:
                scenario = Scenario.from_dict(item)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping unreadable scenario %r: %s", item.get("id") if isinstance(item, dict) else item, exc)
                continue
            self.scenarios[scenario.id] = scenario
        active = raw.get("activeScenarioId")
        if active in self.scenarios:
            self.active_id = active

    def _save(self) -> None:
        if not self.storage_path:
            return
        payload = {
            "activeScenarioId": self.active_id,
            "scenarios": [scenario.to_dict() for scenario in self.scenarios.values()],
        }
        save_store(self.storage_path, payload)

    def list_names(self) -> List[str]:
        return [scenario.name for scenario in self.scenarios.values()]

    def list_scenarios(self) -> List[Dict[str, Any]]:
        return [
            {
                "id": scenario.id,
                "name": scenario.name,
                "createdAt": scenario.created_at,
                "active": scenario.id == self.active_id,
                "hasPlan": scenario.swp_plan is not None,
            }
            for scenario in self.scenarios.values()
        ]

    def get(self, scenario_id: str | None = None) -> Scenario:
        scenario_id = scenario_id or self.active_id
        try:
            return self.scenarios[scenario_id]
        except KeyError:
            raise ScenarioNotFoundError(scenario_id) from None

    def view(self, scenario_id: str | None = None) -> ScenarioView:
        return ScenarioView(self.get(scenario_id))

    # ---- scenarios ----
    def create_scenario(self, name: str) -> Scenario:
        name = (name or "").strip()
        if not name:
            raise InvalidInputError("Scenario name is required.")
        source = self.get()
        scenario = Scenario(
            id=new_record_id(),
            name=name,
            created_at=_now(),
            incomes=list(source.incomes),
            expenses=list(source.expenses),
            investments=list(source.investments),
            liabilities=list(source.liabilities),
            cash=source.cash,
        )
        self.scenarios[scenario.id] = scenario
        self.active_id = scenario.id
        self._save()
        logger.info("Created scenario %s (%s) from %s", scenario.id, name, source.id)
        return scenario

    def set_active(self, scenario_id: str) -> Scenario:
        scenario = self.get(scenario_id)
        self.active_id = scenario.id
        self._save()
        return scenario

    def rename_scenario(self, scenario_id: str, name: str) -> Scenario:
        name = (name or "").strip()
        if not name:
            raise InvalidInputError("Scenario name is required.")
        scenario = self.get(scenario_id)
        scenario.name = name
        self._save()
        return scenario

    def delete_scenario(self, scenario_id: str) -> None:
        if scenario_id == BASELINE_ID:
            raise InvalidInputError("Cannot delete the Baseline scenario.")
        self.get(scenario_id)
        del self.scenarios[scenario_id]
        if self.active_id == scenario_id:
            self.active_id = BASELINE_ID
        self._save()

    # ---- records ----
    def add_record(self, kind: str, row: Mapping[str, Any], scenario_id: str | None = None):
        record_cls = _record_class(kind)
        scenario = self.get(scenario_id)
        record = record_cls.from_row(row)
        records = getattr(scenario, kind)
        if any(existing.id == record.id for existing in records):
            raise InvalidInputError(f"{kind} already has a record with id {record.id!r}")
        setattr(scenario, kind, [*records, record])
        self._invalidate(scenario, f"added {kind} {record.id}")
        return record

    def update_record(self, kind: str, record_id: str, row: Mapping[str, Any], scenario_id: str | None = None):
        record_cls = _record_class(kind)
        scenario = self.get(scenario_id)
        records = getattr(scenario, kind)
        if not any(existing.id == record_id for existing in records):
            raise RecordNotFoundError(record_id)
        record = record_cls.from_row({**row, "id": record_id})
        setattr(scenario, kind, [record if existing.id == record_id else existing for existing in records])
        self._invalidate(scenario, f"updated {kind} {record_id}")
        return record

    def delete_record(self, kind: str, record_id: str, scenario_id: str | None = None) -> None:
        _record_class(kind)
        scenario = self.get(scenario_id)
        records = getattr(scenario, kind)
        remaining = [existing for existing in records if existing.id != record_id]
        if len(remaining) == len(records):
            raise RecordNotFoundError(record_id)
        setattr(scenario, kind, remaining)
        self._invalidate(scenario, f"deleted {kind} {record_id}")

    def set_cash(self, amount: float, scenario_id: str | None = None) -> None:
        scenario = self.get(scenario_id)
        value = float(amount or 0.0)
        if not math.isfinite(value):
            raise InvalidInputError(f"Cash must be a finite amount, got {amount!r}")
        scenario.cash = max(0.0, value)
        self._invalidate(scenario, "updated cash")

    # ---- plan ----
    def save_plan(self, result: SWPPlanResult, scenario_id: str | None = None) -> Dict[str, Any]:
        scenario = self.get(scenario_id)
        scenario.swp_plan = result.to_dict()
        self._save()
        return copy.deepcopy(scenario.swp_plan)

    def get_plan(self, scenario_id: str | None = None) -> Dict[str, Any] | None:
        plan = self.get(scenario_id).swp_plan
        return copy.deepcopy(plan) if plan is not None else None

    def clear_plan(self, scenario_id: str | None = None) -> None:
        scenario = self.get(scenario_id)
        scenario.swp_plan = None
        self._save()

    def _invalidate(self, scenario: Scenario, reason: str) -> None:
        if scenario.swp_plan is not None:
            logger.debug("Clearing SWP plan of scenario %s: %s", scenario.id, reason)
        scenario.swp_plan = None
        self._save()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()
