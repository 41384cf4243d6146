from typing import Optional

from fastapi import APIRouter, Depends

from app.api.deps import get_template_store
from app.core.messages import SuccessMessages
from app.crud.crud_template import TemplateStore
from app.schemas.responses import Envelope
from app.schemas.template import Template, TemplateList, TemplateSummary

# The catalog is public
router = APIRouter()


@router.get("/", response_model=Envelope[TemplateList])
async def read_templates(category: Optional[str] = None, store: TemplateStore = Depends(get_template_store)):
    templates = [TemplateSummary.model_validate(t.model_dump()) for t in await store.list(category)]
    data = TemplateList(templates=templates, count=len(templates))
    return {"status": 200, "message": SuccessMessages.TEMPLATES_RETURNED, "data": data}


@router.get("/{template_id}", response_model=Envelope[Template])
async def read_template(template_id: str, store: TemplateStore = Depends(get_template_store)):
    template = await store.require(template_id)
    return {"status": 200, "message": SuccessMessages.TEMPLATE_LOADED, "data": template}
