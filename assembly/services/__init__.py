"""
Assembly Services - Batches, units and stage progression

Usage:
    from assembly.services import BatchService, AssemblyService

    # Create a batch with its units
    result = BatchService.create_batch(name="B-104", product_id=1, quantity=2,
                                       serial_numbers=["10001", "10002"], actor=user)

    # Advance a unit
    AssemblyService.mark_stage_complete(unit_id=1, stage="LAP_AND_CLEAN", actor=user)
"""

# Base utilities
from assembly.services.base_service import (
    ServiceError,
    ValidationError,
    NotFoundError,
    ConflictError,
    BusinessRuleError,
    InvalidStageTransitionError,
    AuthenticationError,
    PermissionDeniedError,
    success_response,
    resolve_time_window,
    TimeWindow,
    TIME_PERIODS,
    BaseService,
)

# Catalogue
from .product_service import ProductService

# Batches & units
from .batch_service import BatchService, calculate_progress_percent
from .assembly_service import AssemblyService

# Reporting
from .dashboard_service import DashboardService


__all__ = [
    'ServiceError', 'ValidationError', 'NotFoundError', 'ConflictError',
    'BusinessRuleError', 'InvalidStageTransitionError', 'AuthenticationError',
    'PermissionDeniedError', 'success_response', 'resolve_time_window',
    'TimeWindow', 'TIME_PERIODS', 'BaseService',
    'ProductService',
    'BatchService', 'calculate_progress_percent',
    'AssemblyService',
    'DashboardService',
]
