"""
Livestock Theft Flag

Reporting and recovery of stolen animals. The flag blocks new clearances and
permits and raises an alert on every checkpoint scan of the animal.
"""
import logging
from datetime import date
from typing import List, Tuple

from ...models.db_models import LivestockDB
from ..errors import BusinessRuleError
from .base import WorkflowService, paginate

logger = logging.getLogger(__name__)


class LivestockService(WorkflowService):

    def report_stolen(self, livestock_id: str, officer_id: str) -> LivestockDB:
        logger.warning(f"Marking livestock as stolen: {livestock_id}")

        with self.unit_of_work("report stolen livestock"):
            self._require_officer(officer_id, action="report stolen livestock")
            livestock = self._get_or_404(LivestockDB, "Livestock", livestock_id)
            if livestock.stolen:
                raise BusinessRuleError(f"Livestock {livestock.tag_code} is already reported stolen")
            livestock.stolen = True
            livestock.stolen_date = date.today()

        logger.info(f"Livestock marked as stolen: {livestock.tag_code}")
        return livestock

    def recover(self, livestock_id: str, officer_id: str) -> LivestockDB:
        logger.info(f"Marking livestock as recovered: {livestock_id}")

        with self.unit_of_work("recover livestock"):
            self._require_officer(officer_id, action="recover livestock")
            livestock = self._get_or_404(LivestockDB, "Livestock", livestock_id)
            if not livestock.stolen:
                raise BusinessRuleError(f"Livestock {livestock.tag_code} is not reported stolen")
            livestock.stolen = False
            livestock.stolen_date = None

        logger.info(f"Livestock recovered: {livestock.tag_code}")
        return livestock

    def get(self, livestock_id: str) -> LivestockDB:
        return self._get_or_404(LivestockDB, "Livestock", livestock_id)

    def list_stolen(self, page: int = 0, size: int = 20) -> Tuple[List[LivestockDB], int]:
        query = self.db.query(LivestockDB).filter(
            LivestockDB.stolen.is_(True)
        ).order_by(LivestockDB.stolen_date.desc())
        return paginate(query, page, size)
