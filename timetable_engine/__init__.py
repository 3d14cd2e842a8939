"""学校時間割自動生成エンジン

制約充足と局所探索で週間時間割を生成するパッケージです。
"""

__version__ = "1.0.0"
