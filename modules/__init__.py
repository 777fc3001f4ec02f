"""
Прикладные модули приложения
"""
