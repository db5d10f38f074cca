"""
cloudsched — job-to-VM assignment experiments around the dbo_core optimizer.

Subpackages:
    shared/        — pydantic data models and error types
    control_plane/ — assignment policies, metrics, experiment runner, reports
    simulation/    — cluster & workload generation, reference execution engines
"""
