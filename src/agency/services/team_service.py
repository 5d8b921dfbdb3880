"""Team listing."""

from dataclasses import dataclass

from src.agency.core.db.store import Store
from src.agency.models import Account


@dataclass(frozen=True)
class TeamMember:
    account: Account
    assigned_client_count: int


class TeamService:
    def __init__(self, store: Store):
        self.store = store

    async def list_team(self, acting: Account) -> list[TeamMember]:
        """Organization members with client assignment counts, by status then newest."""
        async with self.store.read() as uow:
            accounts = await uow.accounts.list_by_organization(acting.organization_id)
            counts = await uow.assignments.count_by_accounts([a.id for a in accounts])
        return [TeamMember(account=a, assigned_client_count=counts.get(a.id, 0)) for a in accounts]
