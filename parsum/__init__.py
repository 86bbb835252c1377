# Author      : Tyson Limato
# Date        : 2025-7-10
# File Name   : __init__.py
