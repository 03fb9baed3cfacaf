"""Medical knowledge Q&A and in-app help"""
from fastapi import APIRouter, Depends, Request
from loguru import logger

from medischedule.api.demo import limiter
from medischedule.constants import DocumentCategory
from medischedule.dependencies import get_help_bot, get_knowledge_base
from medischedule.knowledge import HelpBot, MedicalKnowledgeBase
from medischedule.schemas import DocumentCreate, HelpChatRequest, MedicalQueryRequest

router = APIRouter()


@router.post("/medical-query")
@limiter.limit("30/minute")
async def medical_query(
    query: MedicalQueryRequest,
    request: Request,
    knowledge_base: MedicalKnowledgeBase = Depends(get_knowledge_base),
):
    result = await knowledge_base.query(query.question)
    logger.info(f"Medical query answered from {len(result.sources)} documents, confidence={result.confidence.value}")
    return result.model_dump(mode="json")


@router.get("/documents")
async def list_documents(
    category: DocumentCategory = None,
    knowledge_base: MedicalKnowledgeBase = Depends(get_knowledge_base),
):
    if category:
        documents = knowledge_base.documents_by_category(category.value)
    else:
        documents = knowledge_base.all_documents()
    return {"documents": [doc.model_dump() for doc in documents], "total_count": len(documents)}


@router.post("/documents", status_code=201)
async def add_document(
    document: DocumentCreate,
    knowledge_base: MedicalKnowledgeBase = Depends(get_knowledge_base),
):
    created = knowledge_base.add_document(document.title, document.content, document.category.value)
    return {"status": "success", "document": created.model_dump()}


@router.post("/help")
async def help_chat(chat_request: HelpChatRequest, help_bot: HelpBot = Depends(get_help_bot)):
    reply = help_bot.chat(chat_request.message)
    return reply.model_dump()
