"""アプリケーション層"""
