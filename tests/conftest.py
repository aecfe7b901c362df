import sys
import os

# 프로젝트 루트를 sys.path에 추가 (app.py, membership_routes.py 등 루트 모듈)
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)
