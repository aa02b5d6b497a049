'''
TorahConnect backend: the eligibility and matching rules of the marketplace,
served over a FastAPI application.
'''
from dotenv import load_dotenv

# Make a local .env visible to everything that reads os.environ
load_dotenv()

__version__ = "0.1.0"
