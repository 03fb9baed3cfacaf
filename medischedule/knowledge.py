"""
Knowledge-base assistants for clinic staff.

`MedicalKnowledgeBase` answers clinical questions from a small curated
document set: keyword retrieval picks the most relevant documents and the
model answers from those excerpts only. `HelpBot` answers questions about
using MediSchedule itself from canned replies, without a model.

Model failures never surface as errors: they degrade to UNAVAILABLE_ANSWER.
"""

import string
from typing import Iterable, List, Optional, Sequence, Tuple

from loguru import logger
from openai import AsyncOpenAI
from pydantic import BaseModel

from medischedule.constants import Confidence, DocumentCategory, HelpCategory
from medischedule.utils import generate_id

DEFAULT_TOP_K = 3

NO_INFORMATION_ANSWER = (
    "I don't have specific information about that topic in my medical knowledge base. "
    "Please consult with a healthcare professional for accurate medical advice."
)

UNAVAILABLE_ANSWER = (
    "I'm experiencing technical difficulties. Please try again or consult with a healthcare professional."
)

DEFAULT_HELP_REPLY = (
    "I can help with MediSchedule features! Ask about: dashboard stats, voice agent calls, "
    "patient management, scheduling, or troubleshooting."
)

SYSTEM_PROMPT = """You are a medical AI assistant for clinic staff. Answer the question using the knowledge base excerpts provided.

Guidelines:
- Only use information from the provided context
- If the context doesn't contain enough information, say so
- Always recommend consulting healthcare professionals for medical decisions
- Be precise and avoid speculation"""


class KnowledgeDocument(BaseModel):
    id: str
    title: str
    content: str
    category: str


class KnowledgeAnswer(BaseModel):
    answer: str
    sources: List[KnowledgeDocument]
    confidence: Confidence


class HelpReply(BaseModel):
    response: str
    sources: List[KnowledgeDocument]


MEDICAL_DOCUMENTS = [
    KnowledgeDocument(
        id="1",
        title="Hypertension Management",
        content=(
            "Hypertension (high blood pressure) is managed through lifestyle changes including diet "
            "modification, regular exercise, weight management, and medication when necessary. First-line "
            "treatments include ACE inhibitors, ARBs, calcium channel blockers, and thiazide diuretics."
        ),
        category=DocumentCategory.TREATMENTS.value,
    ),
    KnowledgeDocument(
        id="2",
        title="Diabetes Type 2 Care",
        content=(
            "Type 2 diabetes management involves blood glucose monitoring, dietary control, regular exercise, "
            "and medications like metformin, insulin, or other antidiabetic drugs. Regular HbA1c testing and "
            "monitoring for complications is essential."
        ),
        category=DocumentCategory.TREATMENTS.value,
    ),
    KnowledgeDocument(
        id="3",
        title="Chest Pain Symptoms",
        content=(
            "Chest pain can indicate various conditions from cardiac issues to musculoskeletal problems. Red "
            "flags include crushing pain, radiation to arm/jaw, shortness of breath, sweating, and nausea. "
            "Immediate evaluation needed for suspected cardiac events."
        ),
        category=DocumentCategory.SYMPTOMS.value,
    ),
    KnowledgeDocument(
        id="4",
        title="Routine Physical Exam",
        content=(
            "Annual physical exams should include vital signs, BMI calculation, cardiovascular assessment, "
            "respiratory examination, abdominal palpation, neurological screening, and age-appropriate "
            "screenings like mammograms, colonoscopies, and blood work."
        ),
        category=DocumentCategory.PROCEDURES.value,
    ),
    KnowledgeDocument(
        id="5",
        title="Medication Adherence",
        content=(
            "Poor medication adherence leads to treatment failures and complications. Strategies include "
            "patient education, simplified dosing regimens, pill organizers, reminder systems, and "
            "addressing cost barriers."
        ),
        category=DocumentCategory.GUIDELINES.value,
    ),
]

HELP_TOPICS = [
    KnowledgeDocument(
        id="1",
        title="Dashboard Overview",
        content=(
            "The MediSchedule dashboard shows appointment statistics, patient counts, weekly activity and "
            "appointment type breakdowns, including pending confirmations and high risk patients."
        ),
        category=HelpCategory.FEATURES.value,
    ),
    KnowledgeDocument(
        id="2",
        title="Voice Agent Calls",
        content=(
            "The Voice Agent uses Vapi to place real phone calls to patients for appointment scheduling. "
            "Select a patient, start the call, and the AI assistant handles the conversation. Live "
            "transcripts appear while the call is running."
        ),
        category=HelpCategory.FEATURES.value,
    ),
    KnowledgeDocument(
        id="3",
        title="Patient Management",
        content=(
            "The Patients view lists every patient record with a risk profile (Low, Moderate, High). "
            "Patient contact details, insurance and notes can be edited in place."
        ),
        category=HelpCategory.FEATURES.value,
    ),
    KnowledgeDocument(
        id="4",
        title="Schedule Management",
        content=(
            "The Schedule view lists appointments with status tracking (Pending, Scheduled, Completed, "
            "Cancelled). Statuses can be updated and appointment details include AI summaries from voice calls."
        ),
        category=HelpCategory.FEATURES.value,
    ),
    KnowledgeDocument(
        id="5",
        title="Webhook Configuration",
        content=(
            "For live transcripts, point the Vapi assistant server URL at PUBLIC_BASE_URL plus "
            "/api/webhooks/vapi. The backend folds webhook events into the call status it serves."
        ),
        category=HelpCategory.TECHNICAL.value,
    ),
    KnowledgeDocument(
        id="6",
        title="Environment Setup",
        content=(
            "Environment variables: OPENAI_API_KEY for AI features, VAPI_API_KEY, VAPI_ASSISTANT_ID and "
            "VAPI_PHONE_NUMBER_ID for voice calls, and PUBLIC_BASE_URL for webhook endpoints."
        ),
        category=HelpCategory.TECHNICAL.value,
    ),
    KnowledgeDocument(
        id="7",
        title="Transcript Issues",
        content=(
            "If live transcripts are not appearing: check the backend is running, check the public tunnel "
            "is active, confirm the Vapi webhook URL, and check GET /api/webhooks/test lists the call."
        ),
        category=HelpCategory.TROUBLESHOOTING.value,
    ),
]

# First matching keyword wins
HELP_REPLIES: List[Tuple[str, str]] = [
    ("voice calls", "To make voice calls: open the Voice Agent tab, select a patient, start the call, "
                    "and the AI assistant handles the conversation automatically."),
    ("dashboard", "The Dashboard shows appointment totals by status, patient and high risk counts, "
                  "this week's activity and the appointment type breakdown."),
    ("patients", "Patient Management: view all patients with risk profiles and edit contact details, "
                 "insurance and notes."),
    ("schedule", "Schedule Management: view all appointments, update their status and read the AI "
                 "summaries from voice calls."),
    ("transcript", "For live transcripts: start the backend, configure the Vapi webhook URL, then place a "
                   "real call. Transcript lines appear as Vapi sends them."),
    ("webhook", "Webhook setup: set the Vapi assistant server URL to PUBLIC_BASE_URL + /api/webhooks/vapi "
                "and keep the backend reachable from the internet."),
]


def tokenize(text: str) -> List[str]:
    words = (word.strip(string.punctuation) for word in text.lower().split())
    return [word for word in words if word]


def similarity(query_words: Sequence[str], document: KnowledgeDocument) -> float:
    """Keyword overlap per query word; title hits weigh twice as much as content hits."""
    if not query_words:
        return 0.0
    title_words = set(tokenize(document.title))
    content_words = set(tokenize(document.content))

    score = 0
    for word in query_words:
        if word in content_words:
            score += 1
        if word in title_words:
            score += 2
    return score / len(query_words)


def retrieve(query: str, documents: Iterable[KnowledgeDocument], top_k: int = DEFAULT_TOP_K) -> List[KnowledgeDocument]:
    query_words = tokenize(query)
    scored = [(similarity(query_words, doc), doc) for doc in documents]
    ranked = sorted((item for item in scored if item[0] > 0), key=lambda item: item[0], reverse=True)
    return [doc for _, doc in ranked[:top_k]]


def rate_confidence(source_count: int, answer: str) -> Confidence:
    if source_count >= 2 and len(answer) > 100:
        return Confidence.HIGH
    if source_count == 1 or len(answer) < 50:
        return Confidence.LOW
    return Confidence.MEDIUM


class MedicalKnowledgeBase:
    def __init__(self, client: Optional[AsyncOpenAI] = None, model: str = "gpt-4o-mini",
                 documents: Optional[Iterable[KnowledgeDocument]] = None):
        self.client = client
        self.model = model
        self.documents = list(MEDICAL_DOCUMENTS if documents is None else documents)

    def all_documents(self) -> List[KnowledgeDocument]:
        return list(self.documents)

    def documents_by_category(self, category: str) -> List[KnowledgeDocument]:
        return [doc for doc in self.documents if doc.category == category]

    def add_document(self, title: str, content: str, category: str) -> KnowledgeDocument:
        existing = {doc.id for doc in self.documents}
        doc_id = generate_id()
        while doc_id in existing:
            doc_id = generate_id()

        document = KnowledgeDocument(id=doc_id, title=title, content=content, category=category)
        self.documents.append(document)
        logger.info(f"Added knowledge document {doc_id} ({category})")
        return document

    async def query(self, question: str, top_k: int = DEFAULT_TOP_K) -> KnowledgeAnswer:
        sources = retrieve(question, self.documents, top_k=top_k)
        if not sources:
            return KnowledgeAnswer(answer=NO_INFORMATION_ANSWER, sources=[], confidence=Confidence.LOW)

        if self.client is None:
            logger.info("OPENAI_API_KEY not set - medical knowledge answers unavailable")
            return KnowledgeAnswer(answer=UNAVAILABLE_ANSWER, sources=[], confidence=Confidence.LOW)

        context = "\n\n".join(f"**{doc.title}**: {doc.content}" for doc in sources)
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": f"CONTEXT:\n{context}\n\nQUESTION: {question}"},
                ],
                temperature=0.2,
                max_tokens=500,
            )
            answer = (response.choices[0].message.content or "").strip()
        except Exception as e:
            logger.warning(f"Knowledge query failed, using fallback answer: {e}")
            return KnowledgeAnswer(answer=UNAVAILABLE_ANSWER, sources=[], confidence=Confidence.LOW)

        if not answer:
            return KnowledgeAnswer(answer=UNAVAILABLE_ANSWER, sources=[], confidence=Confidence.LOW)

        logger.debug(f"Answered knowledge query from {len(sources)} documents")
        return KnowledgeAnswer(answer=answer, sources=sources, confidence=rate_confidence(len(sources), answer))


class HelpBot:
    def __init__(self, topics: Optional[Iterable[KnowledgeDocument]] = None):
        self.topics = list(HELP_TOPICS if topics is None else topics)

    def chat(self, message: str) -> HelpReply:
        lowered = message.lower()
        reply = next((text for keyword, text in HELP_REPLIES if keyword in lowered), DEFAULT_HELP_REPLY)
        return HelpReply(response=reply, sources=retrieve(message, self.topics))


def build_knowledge_base(api_key: Optional[str], model: str = "gpt-4o-mini") -> MedicalKnowledgeBase:
    if not api_key:
        return MedicalKnowledgeBase(client=None, model=model)
    return MedicalKnowledgeBase(AsyncOpenAI(api_key=api_key), model=model)
