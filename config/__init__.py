"""
Конфигурация приложения
"""
