"""
Базовые компоненты: исключения и локальное хранилище
"""
