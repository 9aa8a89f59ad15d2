from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel


class TypeDeclDTO(BaseModel):
    name: str
    kind: str = "struct"
    arity: int = 0


class ConversionDeclDTO(BaseModel):
    trait: str = "From"
    source: str
    target: str
    impl_params: List[str] = []


class SourceUnitDTO(BaseModel):
    path: Optional[str] = None
    types: List[TypeDeclDTO] = []
    conversions: List[ConversionDeclDTO] = []


class SynthesizedEdgeDTO(BaseModel):
    source: str
    target: str
    via: str


class ExclusionDTO(BaseModel):
    source: str
    target: str
    reason: str
    routes: List[List[str]] = []


class DroppedDeclarationDTO(BaseModel):
    path: str
    source: str
    target: str
    reason: str


class ConversionEdgeDTO(BaseModel):
    source: str
    target: str


class TransitivityReportDTO(BaseModel):
    defined_types: List[str]
    direct_edges: List[ConversionEdgeDTO]
    synthesized: List[SynthesizedEdgeDTO]
    exclusions: List[ExclusionDTO] = []
    dropped: List[DroppedDeclarationDTO] = []
    warnings: List[str] = []
