"""Collector collaborators: progress store, metadata, contract registry"""
from .block_progress import BlockProgressService
from .metadata_service import MetadataService
from .contract_registry import ContractRegistryService

__all__ = ['BlockProgressService', 'MetadataService', 'ContractRegistryService']
