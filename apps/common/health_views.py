"""
Health check endpoint for load balancers and monitoring.
"""
import logging
import time

from django.db import DatabaseError, connection
from django.http import JsonResponse
from django.utils import timezone
from django.views import View

logger = logging.getLogger(__name__)


class BasicHealthCheckView(View):
    """
    Unauthenticated health check including database connectivity.
    """

    def get(self, request):
        start_time = time.time()
        health_response = {
            'status': 'healthy',
            'timestamp': timezone.now().isoformat(),
        }

        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
                cursor.fetchone()
            health_response['database'] = {'status': 'healthy'}
        except DatabaseError as e:
            logger.error(f"Database health check failed: {e}")
            health_response['status'] = 'unhealthy'
            health_response['database'] = {'status': 'unhealthy', 'message': 'Database connection failed'}

        health_response['response_time_ms'] = round((time.time() - start_time) * 1000, 2)
        status_code = 200 if health_response['status'] == 'healthy' else 503
        return JsonResponse(health_response, status=status_code)
