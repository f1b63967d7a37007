"""
CodeSequence Entity

Per (region, type) counter backing hospital code sequence numbers.
"""

from sqlmodel import Field, SQLModel


class CodeSequence(SQLModel, table=True):
    """
    CodeSequence entity - last issued sequence number for a region/type pair.

    Incremented only through an atomic UPDATE at the storage layer so that
    concurrent instances never hand out the same number twice.
    """

    __tablename__ = "code_sequences"

    region: str = Field(primary_key=True, max_length=32)
    type_code: str = Field(primary_key=True, max_length=32)
    last_value: int = Field(default=0, nullable=False)
