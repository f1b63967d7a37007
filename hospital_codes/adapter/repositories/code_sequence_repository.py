from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from hospital_codes.app.repositories.code_sequence_repository import ICodeSequenceRepository
from hospital_codes.app.repositories.errors import DuplicateRecordError
from hospital_codes.domain.entities import CodeSequence


class CodeSequenceRepository(ICodeSequenceRepository):
    """CodeSequence repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def next_value(self, region: str, type_code: str) -> int:
        """Increment-and-return in one UPDATE ... RETURNING statement"""
        stmt = (
            update(CodeSequence)
            .where(CodeSequence.region == region, CodeSequence.type_code == type_code)
            .values(last_value=CodeSequence.last_value + 1)
            .returning(CodeSequence.last_value)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        value = result.scalar_one_or_none()
        if value is not None:
            return value

        # First code for this region/type
        sequence = CodeSequence(region=region, type_code=type_code, last_value=1)
        self.session.add(sequence)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise DuplicateRecordError(
                f"Sequence {region}/{type_code} was created concurrently"
            ) from exc
        return sequence.last_value
