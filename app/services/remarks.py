import logging

from app.schemas.reports import RemarkEntry
from app.services.assembler import clip_remarks

logger = logging.getLogger(__name__)


async def save_remarks(store, entry: RemarkEntry) -> RemarkEntry:
    """Save (or overwrite) the teacher's remark for a student, clipped to the max length."""
    clipped = entry.model_copy(update={"remarks": clip_remarks(entry.remarks)})
    await store.save_remarks(clipped)
    logger.info("Remarks saved for student %s (%s)", entry.student_id, entry.subject_name)
    return clipped
