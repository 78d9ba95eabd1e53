# bookmarket/api/__init__.py
