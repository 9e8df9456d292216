"""
Sale management and sale price lookup views.
"""
from rest_framework.views import APIView
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework import status

from apps.common.utils import success_response, error_response
from apps.products.models import Product
from ..serializers import SaleSerializer, SaleWriteSerializer
from ..services import PromotionService, DiscountService


class SaleListCreateView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        sales = PromotionService.get_sales_by_vendor(request.user)
        return success_response(SaleSerializer(sales, many=True).data, 'Sales retrieved successfully')

    def post(self, request):
        serializer = SaleWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response("Invalid sale data", serializer.errors)

        sale, error_msg = PromotionService.create_sale(request.user, serializer.validated_data)
        if not sale:
            return error_response(error_msg)

        return success_response(SaleSerializer(sale).data, 'Sale created successfully', status.HTTP_201_CREATED)


class SaleDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def put(self, request, sale_id):
        serializer = SaleWriteSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return error_response("Invalid sale data", serializer.errors)

        sale, error_msg = PromotionService.update_sale(sale_id, request.user, serializer.validated_data)
        if not sale:
            return error_response(error_msg)
        return success_response(SaleSerializer(sale).data, 'Sale updated successfully')

    def delete(self, request, sale_id):
        deleted, error_msg = PromotionService.delete_sale(sale_id, request.user)
        if not deleted:
            return error_response(error_msg)
        return success_response(None, 'Sale deleted successfully')


class SalePriceView(APIView):
    """Effective price of one product, public like the catalog itself"""
    permission_classes = [AllowAny]

    def get(self, request, product_id):
        product = Product.objects.filter(pk=product_id).first()
        if product is None:
            return error_response("Product not found", status_code=status.HTTP_404_NOT_FOUND)

        price = DiscountService.compute_sale_price(product.id, product.price)
        return success_response({
            'product_id': product.id,
            'list_price': str(price.list_price),
            'sale_price': str(price.sale_price),
            'discount': str(price.discount),
            'sale_id': price.sale.id if price.sale else None,
        })
