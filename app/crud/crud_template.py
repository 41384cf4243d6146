from typing import List, Optional

from app.core.errors import ConflictError, NotFoundError
from app.core.messages import ErrorMessages
from app.db.key_mapper import category_partition, from_template_item, template_key, to_template_item
from app.db.tables import Table
from app.schemas.template import Template


class TemplateStore:
    """Read-mostly template catalog."""

    def __init__(self, table: Table):
        self.table = table

    async def get(self, template_id: str) -> Optional[Template]:
        item = await self.table.get_item(template_key(template_id))
        return from_template_item(item) if item else None

    async def require(self, template_id: str) -> Template:
        template = await self.get(template_id)
        if template is None:
            raise NotFoundError(ErrorMessages.TEMPLATE_NOT_FOUND)
        return template

    async def list(self, category: Optional[str] = None) -> List[Template]:
        if category:
            page = await self.table.query(category_partition(category), index="GSI1")
        else:
            page = await self.table.scan()
        return [from_template_item(item) for item in page.items]

    async def create(self, template: Template) -> Template:
        try:
            await self.table.put_item(to_template_item(template), if_not_exists=True)
        except ConflictError as exc:
            raise ConflictError(ErrorMessages.TEMPLATE_ALREADY_EXISTS) from exc
        return template
