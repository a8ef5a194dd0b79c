import logging
from userhub.bootstrap import Bootstrap
from userhub.context import AppContext
from userhub.topology import DeploymentTopology
from userhub.utils.config import settings

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# Built once per process; every component shares this context
context = AppContext.create(DeploymentTopology.LONG_RUNNING_SERVER, settings)
bootstrap = Bootstrap(context)


if __name__ == "__main__":
    bootstrap.run()
