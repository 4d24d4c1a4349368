"""Record types held by the document store."""

from typing import List, Optional

from pydantic import BaseModel, Field


class Document(BaseModel):
    """A unit of crate documentation with its tags and code examples."""
    id: Optional[int] = Field(default=None, description="Assigned by the store on insert")
    crate: str = Field(..., min_length=1)
    version: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    framework: str = Field(..., min_length=1)
    tags: List[str] = Field(default_factory=list)
    examples: List[str] = Field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class Pattern(BaseModel):
    """A reusable code template for a framework."""
    id: Optional[int] = None
    name: str
    description: str
    code_template: str
    framework: str
    category: str


class ErrorSolution(BaseModel):
    """A known compiler/runtime error message paired with its fix."""
    id: Optional[int] = None
    error_pattern: str
    solution: str
    example_fix: Optional[str] = None
    framework: Optional[str] = None
