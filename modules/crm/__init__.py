"""
Модуль CRM для учета коммерческих предложений (propostas)
"""
