"""结果转换工具：格式枚举、TSV 解析与语句序列化。"""
from sf_rdf_export.converter.formats import RdfFormat

__all__ = ["RdfFormat"]
