"""Storage layer: repository interfaces and backends"""
