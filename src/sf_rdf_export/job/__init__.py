"""导出作业的公共导出。"""
from sf_rdf_export.job.export_job import ExportJob, ExportReport, JobState, create_job

__all__ = ["ExportJob", "ExportReport", "JobState", "create_job"]
